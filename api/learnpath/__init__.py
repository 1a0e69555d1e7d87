"""LearnPath API - sequential progress tracking and certificates."""
