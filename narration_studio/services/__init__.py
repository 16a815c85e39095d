"""Services composing the narration consistency engine."""
