import argparse
import os
import sys

# Allow running from a checkout without installing
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from config import get_config
from cleansong.errors import RelayError
from cleansong.services.freeconvert_service import FreeConvertCompressor, FreeConvertSettings
from cleansong.utils.data_url import input_format


def main() -> None:
    ap = argparse.ArgumentParser(description="Compress an audio file through FreeConvert")
    ap.add_argument("input", help="Path to the audio file")
    ap.add_argument("--out", default="", help="Output path (default: <input>.compressed.mp3)")
    ap.add_argument("--format", default="", help="Input format, e.g. wav (default: file extension)")
    ap.add_argument("--env", default=os.getenv("FLASK_ENV", "development"))
    args = ap.parse_args()

    if not os.path.isfile(args.input):
        raise SystemExit(f"Missing file: {args.input}")

    cfg = get_config(args.env)
    settings = FreeConvertSettings.from_config({k: getattr(cfg, k) for k in dir(cfg) if k.isupper()})
    fmt = args.format or input_format("audio/" + os.path.splitext(args.input)[1].lstrip("."))
    out_path = args.out or f"{os.path.splitext(args.input)[0]}.compressed.{settings.output_format}"

    with open(args.input, "rb") as f:
        data = f.read()

    try:
        out = FreeConvertCompressor(settings).compress(data, fmt)
    except RelayError as e:
        print(f"Failed  {e.kind}  {e.message}")
        raise SystemExit(1)

    with open(out_path, "wb") as f:
        f.write(out)
    print(f"Done. {len(data)} -> {len(out)} bytes  {out_path}")


if __name__ == "__main__":
    main()
