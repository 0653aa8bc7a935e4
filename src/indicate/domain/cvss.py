"""CVSS v3.x base score calculation.

Advisories carry a CVSS vector string (``CVSS:3.1/AV:N/AC:L/...``). The
qualitative severity used by the ``minSeverity`` filter is derived from the
base score computed here, following the FIRST CVSS v3.1 specification.
"""

from __future__ import annotations

import math

from indicate.domain.platforms import Severity

_METRICS: dict[str, dict[str, float]] = {
    "AV": {"N": 0.85, "A": 0.62, "L": 0.55, "P": 0.2},
    "AC": {"L": 0.77, "H": 0.44},
    "UI": {"N": 0.85, "R": 0.62},
    "C": {"H": 0.56, "L": 0.22, "N": 0.0},
    "I": {"H": 0.56, "L": 0.22, "N": 0.0},
    "A": {"H": 0.56, "L": 0.22, "N": 0.0},
}

# Privileges Required depends on Scope.
_PRIVILEGES: dict[str, dict[str, float]] = {
    "U": {"N": 0.85, "L": 0.62, "H": 0.27},
    "C": {"N": 0.85, "L": 0.68, "H": 0.5},
}

_REQUIRED = ("AV", "AC", "PR", "UI", "S", "C", "I", "A")


def parse_vector(vector: str) -> dict[str, str]:
    """Split a CVSS v3 vector into its base metrics.

    Raises:
        ValueError: If the prefix is not ``CVSS:3.x`` or a base metric is
            missing or has an unknown value.
    """
    prefix, _, body = vector.strip().partition("/")
    if prefix not in ("CVSS:3.0", "CVSS:3.1"):
        raise ValueError(f"unsupported CVSS vector: {vector!r}")

    metrics: dict[str, str] = {}
    for part in body.split("/"):
        key, sep, value = part.partition(":")
        if not sep:
            raise ValueError(f"malformed CVSS metric {part!r} in {vector!r}")
        metrics[key] = value

    missing = [k for k in _REQUIRED if k not in metrics]
    if missing:
        raise ValueError(f"CVSS vector {vector!r} lacks base metrics: {', '.join(missing)}")
    if metrics["S"] not in _PRIVILEGES:
        raise ValueError(f"unknown CVSS scope {metrics['S']!r}")
    for key, table in (*_METRICS.items(), ("PR", _PRIVILEGES[metrics["S"]])):
        if metrics[key] not in table:
            raise ValueError(f"unknown CVSS value {key}:{metrics[key]}")
    return metrics


def _roundup(value: float) -> float:
    """Round up to one decimal, avoiding floating point artefacts."""
    as_int = round(value * 100_000)
    if as_int % 10_000 == 0:
        return as_int / 100_000
    return (math.floor(as_int / 10_000) + 1) / 10.0


def base_score(vector: str) -> float:
    """Compute the CVSS v3 base score for *vector*.

    Examples:
        >>> base_score("CVSS:3.1/AV:N/AC:L/PR:N/UI:N/S:U/C:H/I:H/A:H")
        9.8
    """
    m = parse_vector(vector)
    changed = m["S"] == "C"

    iss = 1 - (
        (1 - _METRICS["C"][m["C"]]) * (1 - _METRICS["I"][m["I"]]) * (1 - _METRICS["A"][m["A"]])
    )
    if changed:
        impact = 7.52 * (iss - 0.029) - 3.25 * (iss - 0.02) ** 15
    else:
        impact = 6.42 * iss

    exploitability = (
        8.22
        * _METRICS["AV"][m["AV"]]
        * _METRICS["AC"][m["AC"]]
        * _PRIVILEGES[m["S"]][m["PR"]]
        * _METRICS["UI"][m["UI"]]
    )

    if impact <= 0:
        return 0.0
    if changed:
        return _roundup(min(1.08 * (impact + exploitability), 10.0))
    return _roundup(min(impact + exploitability, 10.0))


def severity(vector: str) -> Severity:
    """Qualitative severity for a CVSS v3 vector."""
    return Severity.from_score(base_score(vector))
