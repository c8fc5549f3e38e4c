"""
Protection Configurator Package

Sales configurator for vehicle protection packages.
Derives package tier contents from column-assigned features, prices a customer's
selection and keeps the admin-curated catalog in a document store.
"""

__version__ = "1.0.0"
