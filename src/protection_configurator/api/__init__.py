"""HTTP API for the storefront and admin panel."""
