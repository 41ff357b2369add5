"""L4 Projection — profile and downstream-script patching."""
