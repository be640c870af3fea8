"""
Release metadata returned by the release-hosting API.
"""

from dataclasses import dataclass, field
from typing import Dict, Any, List, Optional


def _text(value: Any) -> Optional[str]:
    """Non-empty string values only; anything else reads as missing."""
    return value if isinstance(value, str) and value else None


@dataclass(frozen=True)
class ReleaseAsset:
    """A downloadable file attached to a release."""
    name: str
    url: str

    @classmethod
    def from_api_response(cls, data: Dict[str, Any]) -> Optional['ReleaseAsset']:
        url = _text(data.get('browser_download_url'))
        if not url:
            return None
        return cls(name=_text(data.get('name')) or url.rsplit('/', 1)[-1], url=url)


@dataclass
class Release:
    """The latest published release of a repository."""
    tag: Optional[str]
    name: Optional[str] = None
    assets: List[ReleaseAsset] = field(default_factory=list)

    @property
    def version(self) -> str:
        """Tag for log lines; never fails."""
        return self.tag or "unknown"

    @classmethod
    def from_api_response(cls, data: Dict[str, Any]) -> 'Release':
        """Create from a GitHub ``releases/latest`` response."""
        assets = []
        raw_assets = data.get('assets')
        for asset_data in raw_assets if isinstance(raw_assets, list) else []:
            if isinstance(asset_data, dict):
                asset = ReleaseAsset.from_api_response(asset_data)
                if asset:
                    assets.append(asset)
        return cls(tag=_text(data.get('tag_name')), name=_text(data.get('name')), assets=assets)

    def find_asset(self, matcher) -> Optional[ReleaseAsset]:
        """First asset, in API order, whose download URL satisfies ``matcher``."""
        for asset in self.assets:
            if matcher(asset.url):
                return asset
        return None
