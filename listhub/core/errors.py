"""
Error Types
Exceptions that are allowed to cross an adapter boundary
"""


class ListHubError(Exception):
    """Base for all ListHub exceptions."""


class ManifestImportError(ListHubError):
    """An external addon manifest could not be imported."""


class UnknownCatalogError(ListHubError):
    """No list source owns the requested catalog id."""

    def __init__(self, catalog_id: str):
        super().__init__(f"Unknown catalog: {catalog_id}")
        self.catalog_id = catalog_id
