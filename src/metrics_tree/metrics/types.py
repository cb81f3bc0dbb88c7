"""MetricType enum and registry: the closed catalogue of every metric.

Every metric is defined ONCE as an enum member whose value is its short code
(``"CBO"``, ``"PAMI"``, ...). The registry maps each member to a frozen
:class:`MetricMeta` describing its level, value kind, metric family and the
single module that owns its computation.

Usage:
    from metrics_tree.metrics.types import MetricLevel, MetricType, ValueKind, get_metric_meta

    meta = get_metric_meta(MetricType.TCC)
    assert meta.level is MetricLevel.CLASS
    assert meta.kind is ValueKind.FRACTIONAL
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Dict, Set


class MetricLevel(Enum):
    """Granularity at which a metric is attached."""

    METHOD = "method"
    CLASS = "class"
    PACKAGE = "package"
    PROJECT = "project"


class ValueKind(Enum):
    """Whether a metric holds a count or a ratio."""

    LONG = "long"
    FRACTIONAL = "fractional"


class MetricSet(Enum):
    """Metric family, mostly named after the authors who defined it."""

    MCCABE = "McCabe"
    COMPLEXITY = "Complexity"
    HALSTEAD = "Halstead"
    MAINTAINABILITY = "Maintainability"
    CHIDAMBER_KEMERER = "Chidamber-Kemerer"
    LORENZ_KIDD = "Lorenz-Kidd"
    LI_HENRY = "Li-Henry"
    LANZA_MARINESCU = "Lanza-Marinescu"
    BIEMAN_KANG = "Bieman-Kang"
    CLEMENS_LEE = "Clemens Lee"
    R_MARTIN = "Robert C. Martin"
    MOOD = "MOOD"
    QMOOD = "QMOOD"
    STATISTIC = "Statistic"


# ---------------------------------------------------------------------------
# MetricType Enum
# ---------------------------------------------------------------------------


class MetricType(Enum):
    """Every metric code. The enum IS the name: lookups never use bare strings."""

    # ── Method level ────────────────────────────────────────────────
    CC = "CC"
    LOC = "LOC"
    NOL = "NOL"
    NOPM = "NOPM"
    CND = "CND"
    LND = "LND"
    MND = "MND"
    CCM = "CCM"
    HVL = "HVL"
    HD = "HD"
    HL = "HL"
    HEF = "HEF"
    HVC = "HVC"
    HER = "HER"
    MMI = "MMI"

    # ── Class level ─────────────────────────────────────────────────
    WMC = "WMC"
    DIT = "DIT"
    NOC = "NOC"
    CBO = "CBO"
    RFC = "RFC"
    LCOM = "LCOM"
    TCC = "TCC"
    NCSS = "NCSS"
    NOA = "NOA"
    NOM = "NOM"
    NOO = "NOO"
    NOOM = "NOOM"
    NOAM = "NOAM"
    SIZE2 = "SIZE2"
    MPC = "MPC"
    DAC = "DAC"
    NOPA = "NOPA"
    NOAC = "NOAC"
    WOC = "WOC"
    CHVL = "CHVL"
    CHD = "CHD"
    CHL = "CHL"
    CHEF = "CHEF"
    CHVC = "CHVC"
    CHER = "CHER"
    CMI = "CMI"
    CLOC = "CLOC"
    CCC = "CCC"

    # ── Package level ───────────────────────────────────────────────
    Ce = "Ce"
    Ca = "Ca"
    I = "I"  # noqa: E741
    A = "A"
    D = "D"
    PAHVL = "PAHVL"
    PAHD = "PAHD"
    PACHL = "PACHL"
    PACHEF = "PACHEF"
    PACHVC = "PACHVC"
    PACHER = "PACHER"
    PAMI = "PAMI"
    PNOCC = "PNOCC"
    PNOAC = "PNOAC"
    PNOSC = "PNOSC"
    PNOI = "PNOI"
    PNCSS = "PNCSS"
    PLOC = "PLOC"

    # ── Project level ───────────────────────────────────────────────
    PRHVL = "PRHVL"
    PRHD = "PRHD"
    PRCHL = "PRCHL"
    PRCHEF = "PRCHEF"
    PRCHVC = "PRCHVC"
    PRCHER = "PRCHER"
    PRMI = "PRMI"
    MHF = "MHF"
    AHF = "AHF"
    MIF = "MIF"
    AIF = "AIF"
    CF = "CF"
    PF = "PF"
    Reusability = "Reusability"
    Flexibility = "Flexibility"
    Understandability = "Understandability"
    Functionality = "Functionality"
    Extendibility = "Extendibility"
    Effectiveness = "Effectiveness"

    @property
    def meta(self) -> "MetricMeta":
        return get_metric_meta(self)

    @property
    def level(self) -> MetricLevel:
        return get_metric_meta(self).level

    @property
    def kind(self) -> ValueKind:
        return get_metric_meta(self).kind

    @property
    def description(self) -> str:
        return get_metric_meta(self).description


# ---------------------------------------------------------------------------
# MetricMeta dataclass
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class MetricMeta:
    """Metadata for a single metric. Immutable once registered.

    Attributes:
        metric_type: The MetricType member this metadata describes.
        description: Human readable name.
        level: Entity granularity the metric is attached to.
        kind: LONG for counts, FRACTIONAL for ratios and measures.
        metric_set: Family the metric belongs to.
        produced_by: Single-owner module that computes the metric.
    """

    metric_type: MetricType
    description: str
    level: MetricLevel
    kind: ValueKind
    metric_set: MetricSet
    produced_by: str

    def __post_init__(self) -> None:
        if not self.description:
            raise ValueError(f"Missing description for {self.metric_type.value}")
        if not self.produced_by:
            raise ValueError(f"Missing producer for {self.metric_type.value}")


# ---------------------------------------------------------------------------
# Registry, populated at import time
# ---------------------------------------------------------------------------


REGISTRY: Dict[MetricType, MetricMeta] = {}


def register(meta: MetricMeta) -> None:
    """Register a metric. Raises on duplicate with a different producer.

    Idempotent for the same producer.

    Raises:
        ValueError: If the metric is already registered by a different producer.
    """
    if meta.metric_type in REGISTRY:
        existing = REGISTRY[meta.metric_type]
        if existing.produced_by != meta.produced_by:
            raise ValueError(
                f"Metric '{meta.metric_type.value}' already registered by "
                f"'{existing.produced_by}', cannot register again from "
                f"'{meta.produced_by}'"
            )
        return
    REGISTRY[meta.metric_type] = meta


def get_metric_meta(metric_type: MetricType) -> MetricMeta:
    """Look up metadata for a metric.

    Raises:
        KeyError: If the metric is not registered.
    """
    try:
        return REGISTRY[metric_type]
    except KeyError:
        raise KeyError(
            f"Metric '{metric_type.value}' not found in registry. Did you forget to register it?"
        ) from None


def metrics_by_level(level: MetricLevel) -> Set[MetricType]:
    """All metrics attached at ``level``."""
    return {m for m, meta in REGISTRY.items() if meta.level is level}


def metrics_by_set(metric_set: MetricSet) -> Set[MetricType]:
    """All metrics belonging to ``metric_set``."""
    return {m for m, meta in REGISTRY.items() if meta.metric_set is metric_set}


def _register_all(
    entries: list[tuple[MetricType, str, ValueKind, MetricSet]],
    level: MetricLevel,
    produced_by: str,
) -> None:
    for metric_type, description, kind, metric_set in entries:
        register(
            MetricMeta(
                metric_type=metric_type,
                description=description,
                level=level,
                kind=kind,
                metric_set=metric_set,
                produced_by=produced_by,
            )
        )


_LONG = ValueKind.LONG
_FRAC = ValueKind.FRACTIONAL
_M = MetricType
_S = MetricSet

# ── Method level: visitors ────────────────────────────────────────────

_register_all(
    [
        (_M.CC, "McCabe Cyclomatic Complexity", _LONG, _S.MCCABE),
        (_M.LOC, "Lines Of Code", _LONG, _S.COMPLEXITY),
        (_M.NOL, "Number Of Loops", _LONG, _S.COMPLEXITY),
        (_M.NOPM, "Number Of Parameters", _LONG, _S.COMPLEXITY),
        (_M.CND, "Condition Nesting Depth", _LONG, _S.COMPLEXITY),
        (_M.LND, "Loop Nesting Depth", _LONG, _S.COMPLEXITY),
        (_M.MND, "Maximum Nesting Depth", _LONG, _S.LANZA_MARINESCU),
        (_M.CCM, "Cognitive Complexity", _LONG, _S.COMPLEXITY),
        (_M.HVL, "Halstead Volume", _FRAC, _S.HALSTEAD),
        (_M.HD, "Halstead Difficulty", _FRAC, _S.HALSTEAD),
        (_M.HL, "Halstead Length", _LONG, _S.HALSTEAD),
        (_M.HEF, "Halstead Effort", _FRAC, _S.HALSTEAD),
        (_M.HVC, "Halstead Vocabulary", _LONG, _S.HALSTEAD),
        (_M.HER, "Halstead Errors", _FRAC, _S.HALSTEAD),
    ],
    MetricLevel.METHOD,
    "visitors",
)

# ── Class level: visitors ─────────────────────────────────────────────

_register_all(
    [
        (_M.WMC, "Weighted Methods Per Class", _LONG, _S.CHIDAMBER_KEMERER),
        (_M.DIT, "Depth Of Inheritance Tree", _LONG, _S.CHIDAMBER_KEMERER),
        (_M.NOC, "Number Of Children", _LONG, _S.CHIDAMBER_KEMERER),
        (_M.CBO, "Coupling Between Objects", _LONG, _S.CHIDAMBER_KEMERER),
        (_M.RFC, "Response For A Class", _LONG, _S.CHIDAMBER_KEMERER),
        (_M.LCOM, "Lack Of Cohesion Of Methods", _LONG, _S.CHIDAMBER_KEMERER),
        (_M.TCC, "Tight Class Cohesion", _FRAC, _S.BIEMAN_KANG),
        (_M.NCSS, "Non-Commenting Source Statements", _LONG, _S.CLEMENS_LEE),
        (_M.NOA, "Number Of Attributes", _LONG, _S.LORENZ_KIDD),
        (_M.NOO, "Number Of Operations", _LONG, _S.LORENZ_KIDD),
        (_M.NOOM, "Number Of Overridden Methods", _LONG, _S.LORENZ_KIDD),
        (_M.NOAM, "Number Of Added Methods", _LONG, _S.LORENZ_KIDD),
        (_M.NOM, "Number Of Methods", _LONG, _S.LI_HENRY),
        (_M.SIZE2, "Number Of Attributes And Methods", _LONG, _S.LI_HENRY),
        (_M.MPC, "Message Passing Coupling", _LONG, _S.LI_HENRY),
        (_M.DAC, "Data Abstraction Coupling", _LONG, _S.LI_HENRY),
        (_M.NOPA, "Number Of Public Attributes", _LONG, _S.LANZA_MARINESCU),
        (_M.NOAC, "Number Of Accessor Methods", _LONG, _S.LANZA_MARINESCU),
        (_M.WOC, "Weight Of A Class", _FRAC, _S.LANZA_MARINESCU),
        (_M.CHVL, "Halstead Volume", _FRAC, _S.HALSTEAD),
        (_M.CHD, "Halstead Difficulty", _FRAC, _S.HALSTEAD),
        (_M.CHL, "Halstead Length", _LONG, _S.HALSTEAD),
        (_M.CHEF, "Halstead Effort", _FRAC, _S.HALSTEAD),
        (_M.CHVC, "Halstead Vocabulary", _LONG, _S.HALSTEAD),
        (_M.CHER, "Halstead Errors", _FRAC, _S.HALSTEAD),
    ],
    MetricLevel.CLASS,
    "visitors",
)

# ── Derived method/class metrics: model assembler ─────────────────────

register(
    MetricMeta(_M.MMI, "Maintainability Index", MetricLevel.METHOD, _FRAC, _S.MAINTAINABILITY, "model")
)
_register_all(
    [
        (_M.CMI, "Maintainability Index", _FRAC, _S.MAINTAINABILITY),
        (_M.CLOC, "Lines Of Code", _LONG, _S.COMPLEXITY),
        (_M.CCC, "Cognitive Complexity", _LONG, _S.COMPLEXITY),
    ],
    MetricLevel.CLASS,
    "model",
)

# ── Package level: package calculator ─────────────────────────────────

_register_all(
    [
        (_M.Ce, "Efferent Coupling", _LONG, _S.R_MARTIN),
        (_M.Ca, "Afferent Coupling", _LONG, _S.R_MARTIN),
        (_M.I, "Instability", _FRAC, _S.R_MARTIN),
        (_M.A, "Abstractness", _FRAC, _S.R_MARTIN),
        (_M.D, "Normalized Distance From Main Sequence", _FRAC, _S.R_MARTIN),
        (_M.PAHVL, "Halstead Volume", _FRAC, _S.HALSTEAD),
        (_M.PAHD, "Halstead Difficulty", _FRAC, _S.HALSTEAD),
        (_M.PACHL, "Halstead Length", _LONG, _S.HALSTEAD),
        (_M.PACHEF, "Halstead Effort", _FRAC, _S.HALSTEAD),
        (_M.PACHVC, "Halstead Vocabulary", _LONG, _S.HALSTEAD),
        (_M.PACHER, "Halstead Errors", _FRAC, _S.HALSTEAD),
        (_M.PAMI, "Maintainability Index", _FRAC, _S.MAINTAINABILITY),
        (_M.PNOCC, "Number Of Concrete Classes", _LONG, _S.STATISTIC),
        (_M.PNOAC, "Number Of Abstract Classes", _LONG, _S.STATISTIC),
        (_M.PNOSC, "Number Of Static Classes", _LONG, _S.STATISTIC),
        (_M.PNOI, "Number Of Interfaces", _LONG, _S.STATISTIC),
        (_M.PNCSS, "Non-Commenting Source Statements", _LONG, _S.STATISTIC),
        (_M.PLOC, "Lines Of Code", _LONG, _S.STATISTIC),
    ],
    MetricLevel.PACKAGE,
    "calculators.package",
)

# ── Project level: project calculator ─────────────────────────────────

_register_all(
    [
        (_M.PRHVL, "Halstead Volume", _FRAC, _S.HALSTEAD),
        (_M.PRHD, "Halstead Difficulty", _FRAC, _S.HALSTEAD),
        (_M.PRCHL, "Halstead Length", _LONG, _S.HALSTEAD),
        (_M.PRCHEF, "Halstead Effort", _FRAC, _S.HALSTEAD),
        (_M.PRCHVC, "Halstead Vocabulary", _LONG, _S.HALSTEAD),
        (_M.PRCHER, "Halstead Errors", _FRAC, _S.HALSTEAD),
        (_M.PRMI, "Maintainability Index", _FRAC, _S.MAINTAINABILITY),
        (_M.MHF, "Method Hiding Factor", _FRAC, _S.MOOD),
        (_M.AHF, "Attribute Hiding Factor", _FRAC, _S.MOOD),
        (_M.MIF, "Method Inheritance Factor", _FRAC, _S.MOOD),
        (_M.AIF, "Attribute Inheritance Factor", _FRAC, _S.MOOD),
        (_M.CF, "Coupling Factor", _FRAC, _S.MOOD),
        (_M.PF, "Polymorphism Factor", _FRAC, _S.MOOD),
        (_M.Reusability, "Reusability", _FRAC, _S.QMOOD),
        (_M.Flexibility, "Flexibility", _FRAC, _S.QMOOD),
        (_M.Understandability, "Understandability", _FRAC, _S.QMOOD),
        (_M.Functionality, "Functionality", _FRAC, _S.QMOOD),
        (_M.Extendibility, "Extendibility", _FRAC, _S.QMOOD),
        (_M.Effectiveness, "Effectiveness", _FRAC, _S.QMOOD),
    ],
    MetricLevel.PROJECT,
    "calculators.project",
)


def _validate_registry() -> None:
    """Verify every MetricType member is registered. Runs once at import."""
    missing = set(MetricType) - set(REGISTRY)
    if missing:
        names = sorted(m.value for m in missing)
        raise RuntimeError(f"Metric registry incomplete! Missing registrations for: {names}")


_validate_registry()
