"""
Variant consequence kinds and their severity ranking.

Every per-kind property (priority rank, display string and category flags)
lives in the single ``PRIORITY_TABLE`` below.
"""

from enum import Enum
from typing import Dict, List, NamedTuple


class VariantType(Enum):
    """Consequence of a variant with respect to one transcript."""
    INTERGENIC = "INTERGENIC"
    UPSTREAM = "UPSTREAM"
    DOWNSTREAM = "DOWNSTREAM"
    INTRONIC = "INTRONIC"
    SPLICING = "SPLICING"
    UTR5 = "UTR5"
    UTR3 = "UTR3"
    UTR53 = "UTR53"                   # Allele spans a UTR and the CDS boundary
    ncRNA_EXONIC = "ncRNA_EXONIC"
    ncRNA_INTRONIC = "ncRNA_INTRONIC"
    ncRNA_SPLICING = "ncRNA_SPLICING"
    SYNONYMOUS = "SYNONYMOUS"
    NONSYNONYMOUS = "NONSYNONYMOUS"   # Missense
    STOPGAIN = "STOPGAIN"             # Nonsense
    STOPLOSS = "STOPLOSS"
    FS_INSERTION = "FS_INSERTION"
    FS_DELETION = "FS_DELETION"
    FS_SUBSTITUTION = "FS_SUBSTITUTION"
    NON_FS_INSERTION = "NON_FS_INSERTION"
    NON_FS_DELETION = "NON_FS_DELETION"
    NON_FS_SUBSTITUTION = "NON_FS_SUBSTITUTION"
    ERROR = "ERROR"                   # Inconsistent transcript/variant pairing
    UNKNOWN = "UNKNOWN"

    @property
    def priority(self) -> int:
        """Severity rank; lower is more severe."""
        return PRIORITY_TABLE[self].rank

    @property
    def display(self) -> str:
        return PRIORITY_TABLE[self].display

    @property
    def is_coding_exonic(self) -> bool:
        return PRIORITY_TABLE[self].coding_exonic

    @property
    def is_utr(self) -> bool:
        return PRIORITY_TABLE[self].utr

    @property
    def is_noncoding_rna(self) -> bool:
        return PRIORITY_TABLE[self].ncrna

    @property
    def is_splicing(self) -> bool:
        return self in (VariantType.SPLICING, VariantType.ncRNA_SPLICING)

    def __str__(self) -> str:
        return self.display


class TypeInfo(NamedTuple):
    rank: int
    display: str
    coding_exonic: bool = False
    utr: bool = False
    ncrna: bool = False


PRIORITY_TABLE: Dict[VariantType, TypeInfo] = {
    VariantType.SPLICING: TypeInfo(1, "Splicing", coding_exonic=True),
    VariantType.ncRNA_SPLICING: TypeInfo(1, "ncRNA_splicing", ncrna=True),
    VariantType.STOPGAIN: TypeInfo(2, "Stopgain", coding_exonic=True),
    VariantType.STOPLOSS: TypeInfo(2, "Stoploss", coding_exonic=True),
    VariantType.FS_INSERTION: TypeInfo(3, "Frameshift insertion", coding_exonic=True),
    VariantType.FS_DELETION: TypeInfo(3, "Frameshift deletion", coding_exonic=True),
    VariantType.FS_SUBSTITUTION: TypeInfo(3, "Frameshift substitution", coding_exonic=True),
    VariantType.NON_FS_INSERTION: TypeInfo(4, "Nonframeshift insertion", coding_exonic=True),
    VariantType.NON_FS_DELETION: TypeInfo(4, "Nonframeshift deletion", coding_exonic=True),
    VariantType.NON_FS_SUBSTITUTION: TypeInfo(4, "Nonframeshift substitution", coding_exonic=True),
    VariantType.NONSYNONYMOUS: TypeInfo(5, "Nonsynonymous", coding_exonic=True),
    VariantType.SYNONYMOUS: TypeInfo(6, "Synonymous", coding_exonic=True),
    VariantType.ncRNA_EXONIC: TypeInfo(7, "ncRNA_exonic", ncrna=True),
    VariantType.ncRNA_INTRONIC: TypeInfo(8, "ncRNA_intronic", ncrna=True),
    VariantType.UTR5: TypeInfo(9, "UTR5", utr=True),
    VariantType.UTR3: TypeInfo(9, "UTR3", utr=True),
    VariantType.UTR53: TypeInfo(9, "UTR5,UTR3", utr=True),
    VariantType.INTRONIC: TypeInfo(10, "Intronic"),
    VariantType.UPSTREAM: TypeInfo(11, "Upstream"),
    VariantType.DOWNSTREAM: TypeInfo(11, "Downstream"),
    VariantType.INTERGENIC: TypeInfo(12, "Intergenic"),
    VariantType.UNKNOWN: TypeInfo(13, "unknown"),
    VariantType.ERROR: TypeInfo(14, "Potential database error"),
}


def types_by_priority() -> List[VariantType]:
    """All variant types, most severe first (table order within a rank)."""
    return sorted(PRIORITY_TABLE, key=lambda vt: PRIORITY_TABLE[vt].rank)
