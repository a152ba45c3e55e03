"""HTTP clients for remote statistical-data APIs."""
