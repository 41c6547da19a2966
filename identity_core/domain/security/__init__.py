from .pii_masking import PiiMasker, pii_masker

__all__ = ["PiiMasker", "pii_masker"]
