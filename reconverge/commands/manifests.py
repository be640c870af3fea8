"""
Handles the 'manifests' command: show what a run would act on.

Reads and parses every manifest without installing anything. Output is
JSONL, one object per declared item or rejected line.
"""

import json
import click

from ..config import load_config
from ..domain.manifest import TargetKind
from ..infra.manifest_store import ManifestStore


def iter_manifest_entries(store: ManifestStore):
    """Yield one dict per parsed item or invalid line, in manifest order."""
    for kind in TargetKind:
        parsed = store.parse(kind)
        for item in parsed.items:
            yield {'kind': kind.value, **item.to_dict()}
        for line, reason in parsed.invalid:
            yield {'kind': kind.value, 'line': line, 'error': reason}


@click.command(name='manifests')
@click.option('--kind', 'kinds', multiple=True,
              type=click.Choice([k.value for k in TargetKind]),
              help='Only show these target kinds (repeatable)')
def manifests_handler(kinds):
    """List declared items from every manifest as JSONL.

    \b
    Examples:
        reconverge manifests
        reconverge manifests --kind release
    """
    store = ManifestStore.from_config(load_config())
    for entry in iter_manifest_entries(store):
        if kinds and entry['kind'] not in kinds:
            continue
        print(json.dumps(entry, ensure_ascii=False), flush=True)
