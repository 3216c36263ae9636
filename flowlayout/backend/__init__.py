"""HTTP surface for the flowlayout engine."""
