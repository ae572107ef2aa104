"""
Exception types raised while building transcripts and annotating variants.
"""


class TxEffectError(Exception):
    """Base class for all txeffect errors."""
    pass


class MalformedTranscriptError(TxEffectError):
    """A transcript record violates the exon/CDS geometry invariants."""
    pass


class CoordinateInconsistencyError(TxEffectError):
    """Mapping could not resolve a consistent transcript offset."""
    pass


class UnsupportedVariantShapeError(TxEffectError):
    """The allele pair does not describe a change the classifier understands."""
    pass


class ConfigurationError(TxEffectError):
    """Custom exception for configuration errors."""
    pass
