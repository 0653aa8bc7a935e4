"""Unsafe-code usage statistics, as reported by cargo-geiger.

Three nested levels:
- GeigerUnsafety: ``used`` / ``unused`` categories plus derived ``total``.
- GeigerCategories: five GeigerCount values plus derived ``total``.
- GeigerCount: ``safe`` / ``unsafe`` counts plus derived ``total`` and
  ``percentage_unsafe``.

Derived totals are computed, never stored, so they always equal the sum of
their parts.
"""

from __future__ import annotations

from pydantic import AliasChoices, BaseModel, Field

CATEGORY_NAMES: tuple[str, ...] = ("functions", "exprs", "item_impls", "item_traits", "methods")


class GeigerCount(BaseModel):
    """Safe/unsafe counts for one syntactic category."""

    model_config = {"frozen": True}

    safe: int = 0
    # cargo-geiger serializes the field as ``unsafe_``.
    unsafe: int = Field(default=0, validation_alias=AliasChoices("unsafe", "unsafe_"))

    @property
    def total(self) -> int:
        return self.safe + self.unsafe

    @property
    def percentage_unsafe(self) -> float:
        """Fraction of unsafe items, ``0.0`` when there are no items at all."""
        if self.total == 0:
            return 0.0
        return self.unsafe / self.total

    def __add__(self, other: GeigerCount) -> GeigerCount:
        return GeigerCount(safe=self.safe + other.safe, unsafe=self.unsafe + other.unsafe)


class GeigerCategories(BaseModel):
    """Counts per syntactic category."""

    model_config = {"frozen": True}

    functions: GeigerCount = Field(default_factory=GeigerCount)
    exprs: GeigerCount = Field(default_factory=GeigerCount)
    item_impls: GeigerCount = Field(default_factory=GeigerCount)
    item_traits: GeigerCount = Field(default_factory=GeigerCount)
    methods: GeigerCount = Field(default_factory=GeigerCount)

    @property
    def total(self) -> GeigerCount:
        result = GeigerCount()
        for name in CATEGORY_NAMES:
            result = result + getattr(self, name)
        return result

    def __add__(self, other: GeigerCategories) -> GeigerCategories:
        return GeigerCategories(
            **{name: getattr(self, name) + getattr(other, name) for name in CATEGORY_NAMES}
        )


class GeigerUnsafety(BaseModel):
    """Unsafe usage of a single package (name, version)."""

    model_config = {"frozen": True}

    used: GeigerCategories = Field(default_factory=GeigerCategories)
    unused: GeigerCategories = Field(default_factory=GeigerCategories)
    forbids_unsafe: bool = False

    @property
    def total(self) -> GeigerCategories:
        return self.used + self.unused
