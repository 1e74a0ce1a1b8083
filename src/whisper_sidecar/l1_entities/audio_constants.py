"""Audio format constants shared across layers."""

SAMPLE_RATE = 16000
SAMPLE_WIDTH = 4  # bytes per float32 sample
