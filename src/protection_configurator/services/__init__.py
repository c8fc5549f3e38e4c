"""Services subpackage - document store access and admin operations."""
