from __future__ import annotations

import argparse
import base64
import io
from datetime import datetime
from pathlib import Path

import yaml
from PIL import Image, ImageDraw


def _photo(label: str, rgb: tuple[int, int, int], size: tuple[int, int] = (1280, 960)) -> str:
    img = Image.new("RGB", size, rgb)
    draw = ImageDraw.Draw(img)
    draw.rectangle([40, 40, size[0] - 40, size[1] - 40], outline=(255, 255, 255), width=12)
    draw.text((80, 80), label, fill=(255, 255, 255))
    buf = io.BytesIO()
    img.save(buf, format="JPEG", quality=90)
    return "data:image/jpeg;base64," + base64.b64encode(buf.getvalue()).decode("ascii")


def build_sample(*, kind: str, markers: int) -> dict:
    views = ["front", "rear", "driverSide", "passengerSide", "roof"]
    types = ["scratch", "dent", "chip", "scuff", "crack"]
    damage = []
    for i in range(markers):
        damage.append(
            {
                "id": f"m{i + 1}",
                "view": views[i % len(views)],
                "x": 20 + (i * 13) % 60,
                "y": 30 + (i * 17) % 40,
                "damageType": types[i % len(types)],
                "size": ["small", "medium", "large"][i % 3],
                "description": f"Sample damage {i + 1}",
                "photos": [_photo(f"damage {i + 1}", (150, 60 + i * 10 % 150, 60))],
            }
        )
    return {
        "kind": kind,
        "jobNumber": "JOB-1001",
        "vehicle": {
            "registration": "AB12 CDE",
            "make": "Ford",
            "model": "Transit Custom",
            "colour": "White",
            "year": 2021,
            "fuelType": "Diesel",
            "vin": "WF0XXXTTGXMA12345",
        },
        "collectionAddress": {"line1": "1 Depot Road", "city": "Glasgow", "postcode": "G1 1AA"},
        "deliveryAddress": {"line1": "22 Harbour Street", "city": "Leith", "postcode": "EH6 6QR"},
        "conditions": {"weather": "Dry", "lighting": "Daylight", "cleanliness": "Clean"},
        "mileage": "42,180",
        "fuelLevel": 3,
        "numberOfKeys": 2,
        "driverName": "Sam Driver",
        "customerName": "Alex Customer",
        "notes": "Vehicle handed over at reception.",
        "completedAt": datetime(2026, 10, 1, 14, 30).isoformat(),
        "photos": {
            "exterior": {
                "front": [_photo("front", (40, 90, 160))],
                "rear": [_photo("rear", (40, 120, 100))],
                "driverSide": [_photo("driver side", (90, 60, 140))],
                "passengerSide": [_photo("passenger side", (140, 90, 40))],
            },
            "interior": {"dashboard": [_photo("dashboard", (60, 60, 60))]},
            "wheels": {"frontLeft": [_photo("front left", (80, 80, 80))]},
            "documents": {"keys": [_photo("keys", (120, 120, 30))], "odometer": [_photo("odometer", (20, 20, 20))]},
        },
        "documentPresence": {"keys": True, "v5": False, "lockingWheelNut": None, "serviceBook": False},
        "damageMarkers": damage,
    }


def main() -> None:
    ap = argparse.ArgumentParser(description="Write a synthetic inspection record (yaml) for manual checks.")
    ap.add_argument("--out", default="output/sample_inspection.yaml")
    ap.add_argument("--kind", default="delivery", choices=["collection", "delivery"])
    ap.add_argument("--markers", type=int, default=5)
    args = ap.parse_args()

    out = Path(args.out)
    out.parent.mkdir(parents=True, exist_ok=True)
    out.write_text(
        yaml.safe_dump(build_sample(kind=args.kind, markers=args.markers), sort_keys=False, width=10_000),
        encoding="utf-8",
    )
    print(f"OK wrote {out}")


if __name__ == "__main__":
    main()
