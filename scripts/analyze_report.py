#!/usr/bin/env python3
"""Summarize a reconciliation report: status and serviceability counts plus the
most frequent tokens missing on each side."""
import sys
from collections import Counter
from pathlib import Path

sys.path.append(str(Path(__file__).resolve().parents[1] / 'src'))
from shipping_recon.io import read_rows  # type: ignore


def _tokens(value: str) -> list:
    if not value or value == '0':
        return []
    return [t.strip() for t in value.split('|') if t.strip()]


def main(argv=None) -> int:
    argv = sys.argv[1:] if argv is None else argv
    path = Path(argv[0] if argv else 'output_results.csv')
    if not path.exists():
        print(f"Report not found: {path}")
        return 1
    rows = read_rows(path)

    c_status = Counter((r.get('status') or '').strip() for r in rows)
    c_serviceable = Counter((r.get('serviceable') or '').strip() for r in rows)
    c_eom_only = Counter(t for r in rows for t in _tokens(r.get('PresentinEomnotGiv') or ''))
    c_giv_only = Counter(t for r in rows for t in _tokens(r.get('PresentinGivnotEom') or ''))

    print(f"Report: {path.name}")
    print(f"Total rows: {len(rows)}")

    print('\nStatus:')
    for k, v in c_status.most_common():
        print(f'- {k or "(missing)"}: {v}')

    print('\nServiceable:')
    for k, v in c_serviceable.most_common():
        print(f'- {k or "(missing)"}: {v}')

    print('\nPresent in EOM, not in GIV:')
    for k, v in c_eom_only.most_common(10):
        print(f'- {k}: {v}')

    print('\nPresent in GIV, not in EOM:')
    for k, v in c_giv_only.most_common(10):
        print(f'- {k}: {v}')
    return 0


if __name__ == '__main__':
    raise SystemExit(main())
