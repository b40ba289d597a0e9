"""HTTP surface driving the pipeline."""
