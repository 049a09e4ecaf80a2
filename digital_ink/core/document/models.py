"""
Source document descriptors.
"""
from dataclasses import dataclass


@dataclass(frozen=True)
class SourceDocument:
    """A PDF the user annotates, identified by a stable id."""
    id: str
    name: str
    # Local file path or http(s) URL
    locator: str

    @property
    def is_remote(self) -> bool:
        return self.locator.lower().startswith(("http://", "https://"))

    def to_dict(self):
        return {'id': self.id, 'name': self.name, 'locator': self.locator}

    @staticmethod
    def from_dict(data):
        return SourceDocument(
            id=str(data['id']),
            name=str(data['name']),
            locator=str(data['locator']),
        )
