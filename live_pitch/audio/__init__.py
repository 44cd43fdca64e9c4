"""Audio sources, pitch estimators and the tuner pipeline."""
