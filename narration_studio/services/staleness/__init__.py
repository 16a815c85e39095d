from .classifier import classify, classify_text

__all__ = ["classify", "classify_text"]
