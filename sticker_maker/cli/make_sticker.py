import argparse
import logging
import sys
from pathlib import Path

from dotenv import load_dotenv

# Load environment variables first
load_dotenv()

from ..exceptions import StickerError
from ..models.color import Seed
from ..models.parameters import DEFAULT_THICKNESS, DEFAULT_TOLERANCE
from ..pipeline.sticker_pipeline import render_sticker
from ..services.closing_service import ClosingService
from ..services.color_service import ColorService
from ..services.dilation_service import DEFAULT_METHOD, DILATION_METHODS, DilationService
from ..services.image_service import ImageService
from ..services.outline_service import OutlineService

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Turn a photo into a sticker with a white outline.")
    parser.add_argument("input", type=Path, help="JPEG, PNG or WebP image")
    parser.add_argument("-o", "--output", type=Path, default=None,
                        help="PNG to write (default: sticker_<unix millis>.png next to the input)")
    parser.add_argument("--seed", type=int, nargs=2, metavar=("X", "Y"),
                        help="background pixel to remove from")
    parser.add_argument("--tolerance", type=int, default=DEFAULT_TOLERANCE, help="0-100")
    parser.add_argument("--thickness", type=int, default=DEFAULT_THICKNESS, help="outline width, 0-50 px")
    parser.add_argument("--merge-gap", type=int, default=0, help="bridge fragments closer than this, 0-150 px")
    parser.add_argument("--method", choices=DILATION_METHODS, default=DEFAULT_METHOD,
                        help="disk dilation strategy")
    parser.add_argument("-v", "--verbose", action="store_true")
    return parser


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)

    # --- Centralized Logging Configuration ---
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format='%(asctime)s - %(name)-25s - %(levelname)-8s - %(message)s',
        datefmt='%H:%M:%S'
    )

    image_service = ImageService()
    color_service = ColorService()
    dilation_service = DilationService(args.method)

    try:
        source = image_service.load(args.input)
    except (FileNotFoundError, StickerError) as err:
        logger.error(f"Cannot read {args.input}: {err}")
        return 1

    seed = None
    target = None
    if args.seed:
        seed = Seed(*args.seed)
        target = color_service.pick_color(source, seed.x, seed.y)
        if target is None:
            logger.warning(f"Seed {tuple(args.seed)} is transparent or outside the image; nothing removed")
            seed = None
        else:
            logger.info(f"Removing background similar to {target.as_dict()}")

    sticker = render_sticker(
        source,
        seed,
        target,
        args.tolerance,
        args.thickness,
        args.merge_gap,
        color_service=color_service,
        closing_service=ClosingService(dilation_service),
        outline_service=OutlineService(dilation_service),
    )

    output = args.output or args.input.with_name(image_service.export_filename())
    try:
        image_service.save(sticker, output)
    except (OSError, StickerError) as err:
        logger.error(f"Cannot write {output}: {err}")
        return 1

    logger.info(f"Saved {sticker.width}x{sticker.height} sticker to {output}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
