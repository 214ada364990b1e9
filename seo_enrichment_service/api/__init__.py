"""HTTP API for job submission and scan triggers."""
