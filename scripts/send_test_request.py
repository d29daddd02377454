import argparse
import base64
import json
from pathlib import Path
from typing import Dict

import requests

DATA_URL_PREFIX = "data:image/png;base64,"


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Request a QR code from the composer service and save it."
    )
    parser.add_argument("content", help="Text or URL to encode.")
    parser.add_argument(
        "--icon",
        type=Path,
        help="Optional logo image to place at the center of the code.",
    )
    parser.add_argument("--size", help="Output width in pixels (default: 512).")
    parser.add_argument("--qr-color", help="Module color as hex, e.g. #000000.")
    parser.add_argument("--bg-color", help="Background color as hex, e.g. #FFFFFF.")
    parser.add_argument(
        "--error-correction",
        choices=["L", "M", "Q", "H"],
        help="Error-correction level (default: H).",
    )
    parser.add_argument(
        "--host",
        default="http://127.0.0.1:5000",
        help="Server host (default: http://127.0.0.1:5000).",
    )
    parser.add_argument(
        "--output",
        type=Path,
        default=Path("qr_code.png"),
        help="Path to save the QR code image (default: qr_code.png).",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Print the form fields instead of sending the request.",
    )
    return parser.parse_args()


def build_fields(args: argparse.Namespace) -> Dict[str, str]:
    optional = {
        "size": args.size,
        "qrColor": args.qr_color,
        "bgColor": args.bg_color,
        "errorCorrection": args.error_correction,
    }
    fields = {"content": args.content}
    fields.update({key: value for key, value in optional.items() if value})
    return fields


def save_data_url(data_url: str, output_path: Path) -> None:
    if not data_url.startswith(DATA_URL_PREFIX):
        raise ValueError("Response is not a PNG data URL")
    output_path.write_bytes(base64.b64decode(data_url[len(DATA_URL_PREFIX):]))


def main() -> None:
    args = parse_args()
    fields = build_fields(args)

    if args.dry_run:
        print(json.dumps({**fields, "icon": str(args.icon) if args.icon else None}, indent=2))
        return

    files = None
    if args.icon:
        files = {"icon": (args.icon.name, args.icon.read_bytes())}

    response = requests.post(
        f"{args.host.rstrip('/')}/generate",
        data=fields,
        files=files,
        timeout=30,
    )

    print(f"Status: {response.status_code}")
    if not response.ok:
        # proxies may answer with HTML rather than the service's JSON errors
        print(response.text)
        response.raise_for_status()

    save_data_url(response.json()["qrCodeUrl"], args.output)
    print(f"Saved QR code to {args.output.resolve()}")


if __name__ == "__main__":
    main()
