"""Platform and severity enums used to filter advisory history.

``Arch`` and ``OS`` are the fixed target enumerations advisories are tagged
with. Edge parameters must match a member exactly; anything else is a
contract violation rather than an empty result.
"""

from __future__ import annotations

from enum import StrEnum


class Arch(StrEnum):
    """Target CPU architectures."""

    AARCH64 = "aarch64"
    ARM = "arm"
    AVR = "avr"
    BPF = "bpf"
    CSKY = "csky"
    HEXAGON = "hexagon"
    LOONGARCH64 = "loongarch64"
    M68K = "m68k"
    MIPS = "mips"
    MIPS32R6 = "mips32r6"
    MIPS64 = "mips64"
    MIPS64R6 = "mips64r6"
    MSP430 = "msp430"
    NVPTX64 = "nvptx64"
    POWERPC = "powerpc"
    POWERPC64 = "powerpc64"
    RISCV32 = "riscv32"
    RISCV64 = "riscv64"
    S390X = "s390x"
    SPARC = "sparc"
    SPARC64 = "sparc64"
    WASM32 = "wasm32"
    WASM64 = "wasm64"
    X86 = "x86"
    X86_64 = "x86_64"


class OS(StrEnum):
    """Target operating systems."""

    AIX = "aix"
    ANDROID = "android"
    CUDA = "cuda"
    DRAGONFLY = "dragonfly"
    EMSCRIPTEN = "emscripten"
    ESPIDF = "espidf"
    FREEBSD = "freebsd"
    FUCHSIA = "fuchsia"
    HAIKU = "haiku"
    HERMIT = "hermit"
    HORIZON = "horizon"
    ILLUMOS = "illumos"
    IOS = "ios"
    L4RE = "l4re"
    LINUX = "linux"
    MACOS = "macos"
    NETBSD = "netbsd"
    NONE = "none"
    OPENBSD = "openbsd"
    PSP = "psp"
    REDOX = "redox"
    SOLARIS = "solaris"
    SOLID_ASP3 = "solid_asp3"
    TVOS = "tvos"
    UEFI = "uefi"
    UNKNOWN = "unknown"
    VITA = "vita"
    VXWORKS = "vxworks"
    WASI = "wasi"
    WATCHOS = "watchos"
    WINDOWS = "windows"
    XOUS = "xous"


class Severity(StrEnum):
    """Qualitative CVSS severity, ordered from ``none`` to ``critical``."""

    NONE = "none"
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"

    @property
    def rank(self) -> int:
        return _SEVERITY_RANK[self]

    def at_least(self, floor: Severity) -> bool:
        """Inclusive comparison against a severity floor."""
        return self.rank >= floor.rank

    @classmethod
    def from_score(cls, score: float) -> Severity:
        """Map a CVSS base score (0.0–10.0) onto its qualitative rating."""
        if score <= 0.0:
            return cls.NONE
        if score < 4.0:
            return cls.LOW
        if score < 7.0:
            return cls.MEDIUM
        if score < 9.0:
            return cls.HIGH
        return cls.CRITICAL


_SEVERITY_RANK: dict[Severity, int] = {s: i for i, s in enumerate(Severity)}
