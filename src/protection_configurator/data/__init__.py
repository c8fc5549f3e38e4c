"""Built-in dataset and bulk import tooling."""
