from __future__ import annotations

import argparse
import subprocess
import sys
from pathlib import Path


def _bin_pod_gen(repo_root: Path) -> list[str]:
    # Prefer project venv when present.
    cand = repo_root / ".venv" / "bin" / "pod-gen"
    if cand.exists():
        return [str(cand)]
    return [sys.executable, "-m", "pod_gen.cli"]


def _run(cmd: list[str]) -> None:
    p = subprocess.run(cmd, stdout=sys.stdout, stderr=sys.stderr)
    if p.returncode != 0:
        raise SystemExit(p.returncode)


def main() -> None:
    ap = argparse.ArgumentParser(description="pod-gen smoke check (outlines + sample record + PDF).")
    ap.add_argument("--out-dir", default="output/smoke", help="Where the sample record and PDF are written")
    ap.add_argument("--markers", type=int, default=5)
    args = ap.parse_args()

    repo_root = Path(__file__).resolve().parents[1]
    out_dir = Path(args.out_dir)
    if not out_dir.is_absolute():
        out_dir = (repo_root / out_dir).resolve()
    sample = out_dir / "inspection.yaml"
    pdf = out_dir / "inspection.pdf"

    pod_gen = _bin_pod_gen(repo_root)
    _run([*pod_gen, "make-outlines"])
    _run(
        [
            sys.executable,
            str(repo_root / "scripts" / "make_sample_inspection.py"),
            "--out",
            str(sample),
            "--markers",
            str(args.markers),
        ]
    )
    _run([*pod_gen, "validate", "--inspection", str(sample)])
    _run([*pod_gen, "generate", "--inspection", str(sample), "--out", str(pdf)])
    print(f"OK smoke check passed: {pdf}")


if __name__ == "__main__":
    main()
