# fedstore/ownership.py
"""
Ownership of identifiers.

An identifier is local when its host matches the configured hostname,
otherwise it belongs to a federated peer.
"""

from .config import Config
from .iri import host_of


class OwnershipResolver:
    """
    Classifies identifiers as local or federated.

    Malformed identifiers raise InvalidDocument; callers validate input
    before asking about ownership.
    """

    def __init__(self, config: Config):
        self.hostname = config.hostname.lower()

    def owns(self, identifier: str) -> bool:
        """True iff the identifier's host equals the configured hostname."""
        return host_of(identifier) == self.hostname

    def is_federated(self, identifier: str) -> bool:
        return not self.owns(identifier)
