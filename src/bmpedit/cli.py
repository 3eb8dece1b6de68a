from __future__ import annotations
import argparse
import logging
from pathlib import Path
from typing import Callable, List, Optional, Sequence

from .codec import read_header
from .config import SessionConfig, TransformConfig
from .helpers import export_preview, resolve_bitmap_path
from .session import EditSession
from .transforms import DEFAULT_REGISTRY, Number, TransformSpec
from .viz import Visualizer

logger = logging.getLogger(__name__)

# ParamSpec.name -> argparse dest
_PARAM_FLAGS = {
    "factor": "factor",
    "quarter_turns": "turns",
    "x_scale": "x_scale",
    "y_scale": "y_scale",
}


def build_argparser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="bmpedit", description="24-bit bitmap editor")
    p.add_argument("-v", "--verbose", action="count", default=0,
                   help="-v for progress, -vv for debug output")
    sub = p.add_subparsers(dest="command", required=True)

    ap = sub.add_parser("apply", help="Apply one transform and save the result")
    g_io = ap.add_argument_group("I/O")
    g_io.add_argument("input", type=str, help="Source bitmap")
    g_io.add_argument("output", type=str, help="Destination bitmap (must differ from input)")
    g_io.add_argument("--preview_dir", type=str, default=None, help="Also save PNG before/after copies")
    g_io.add_argument("--show", action="store_true", help="Display before/after")

    g_tf = ap.add_argument_group("Transform")
    g_tf.add_argument("-t", "--transform", type=int, required=True,
                      help="Transform number (see `bmpedit transforms`)")
    g_tf.add_argument("--factor", type=float, default=None, help="Scaling factor (2, 8, 9)")
    g_tf.add_argument("--turns", type=int, default=None, help="Number of 90 degree turns (5)")
    g_tf.add_argument("--x_scale", type=int, default=None, help="Width multiplier (6)")
    g_tf.add_argument("--y_scale", type=int, default=None, help="Height multiplier (6)")

    g_px = ap.add_argument_group("Channel math")
    g_px.add_argument("--wrap", action="store_true",
                      help="Wrap out-of-range channels modulo 256 instead of clamping")
    g_px.add_argument("--vignette_corrected", action="store_true",
                      help="Vignette relative to the image diagonal instead of the row count")

    ip = sub.add_parser("info", help="Print bitmap header fields")
    ip.add_argument("input", type=str)

    sub.add_parser("transforms", help="List available transforms")

    mp = sub.add_parser("menu", help="Interactive editing session")
    mp.add_argument("input", type=str, nargs="?", default=None)
    mp.add_argument("--wrap", action="store_true")
    mp.add_argument("--vignette_corrected", action="store_true")

    return p


def _transform_config(args: argparse.Namespace) -> TransformConfig:
    return TransformConfig(
        channel_policy="wrap" if args.wrap else "clamp",
        vignette_corrected=args.vignette_corrected,
    )


def _describe(spec: TransformSpec) -> str:
    params = ", ".join(f"--{_PARAM_FLAGS[p.name]} {p.kind.__name__}" for p in spec.params)
    return f"{int(spec.selector):>3}) {spec.name}" + (f"  [{params}]" if params else "")


def _params_from_args(spec: TransformSpec, args: argparse.Namespace) -> List[Number]:
    values = []
    for p in spec.params:
        value = getattr(args, _PARAM_FLAGS[p.name])
        if value is None:
            raise SystemExit(f"{spec.name} needs --{_PARAM_FLAGS[p.name]}")
        values.append(value)
    return values


def _cmd_apply(args: argparse.Namespace) -> None:
    spec = DEFAULT_REGISTRY.get(args.transform)
    if spec is None:
        raise SystemExit(f"Unknown transform {args.transform}; run `bmpedit transforms`")
    params = _params_from_args(spec, args)

    cfg = SessionConfig(transform=_transform_config(args), preview_dir=args.preview_dir, show=args.show)
    session = EditSession(cfg)
    if not session.open(args.input):
        raise SystemExit(f"Could not read a 24/32-bit bitmap from {args.input}")

    result = session.apply(spec.selector, params)
    if not result.ok:
        raise SystemExit(f"Invalid input: {result.error}")
    if not session.save(args.output):
        raise SystemExit(f"Failed to write the processed image to {args.output}")
    h, w = result.image.shape[:2]
    print(f"{spec.name}: saved {args.output} ({w}x{h})")

    if cfg.preview_dir:
        base = Path(args.output).stem
        export_preview(session.image, Path(cfg.preview_dir) / f"{base}_orig.png")
        export_preview(session.current, Path(cfg.preview_dir) / f"{base}.png")
    if cfg.show:
        Visualizer().show_before_after(session.image, session.current, label=spec.name)


def _cmd_info(args: argparse.Namespace) -> None:
    try:
        hdr = read_header(args.input)
    except (OSError, ValueError) as e:
        raise SystemExit(f"Could not read header of {args.input}: {e}")
    for k, v in hdr.as_dict().items():
        print(f"{k}: {v}")
    print(f"layout_ok: {hdr.is_consistent}")


def _cmd_transforms(_args: argparse.Namespace) -> None:
    for spec in DEFAULT_REGISTRY:
        print(_describe(spec))


def _print_menu(filename: str) -> None:
    print("IMAGE PROCESSING MENU")
    print(f"  0) Change image (current: {filename})")
    for spec in DEFAULT_REGISTRY:
        print(f"{int(spec.selector):>3}) {spec.name}")


def run_menu(session: EditSession, input_fn: Callable[[str], str] = input) -> None:
    """Interactive loop: pick a transform, give its parameters, save under a new name."""
    _print_menu(session.source_path.stem if session.source_path else "none")
    while True:
        try:
            raw = input_fn("Enter menu selection (Q to quit): ").strip()
        except EOFError:
            break
        if raw.lower() == "q":
            break
        try:
            selection = int(raw)
        except ValueError:
            selection = -1
        if not 0 <= selection <= len(DEFAULT_REGISTRY):
            print(f"Invalid input. Enter a number between 0 and {len(DEFAULT_REGISTRY)}.")
            continue

        try:
            if selection == 0:
                name = resolve_bitmap_path(input_fn("Enter the filename to switch to: ").strip())
                if session.open(name):
                    _print_menu(name.stem)
                else:
                    print(f"File {name} could not be read; keeping {session.source_path}.")
                continue

            spec = DEFAULT_REGISTRY.get(selection)
            params = [input_fn(f"{p.prompt}: ").strip() for p in spec.params]
            result = session.apply(selection, params)
            if not result.ok:
                print(f"Invalid input: {result.error}")
                continue

            out = resolve_bitmap_path(
                input_fn("Enter the new file name for the processed image: ").strip()
            )
        except EOFError:
            break
        if session.save(out):
            print(f"{spec.name} done. Saved as {out}")
        else:
            print("Error: failed to write the processed image (use a name other than the original).")
    print("Thank you for using bmpedit")


def _cmd_menu(args: argparse.Namespace) -> None:
    session = EditSession(SessionConfig(transform=_transform_config(args)))
    name = args.input
    if name is None:
        try:
            name = input("Enter input filename: ").strip()
        except EOFError:
            raise SystemExit(1)
    path = resolve_bitmap_path(name)
    if not session.open(path):
        raise SystemExit(f"File {path} could not be read as a bitmap.")
    run_menu(session)


_COMMANDS = {
    "apply": _cmd_apply,
    "info": _cmd_info,
    "transforms": _cmd_transforms,
    "menu": _cmd_menu,
}


def main(argv: Optional[Sequence[str]] = None) -> None:
    args = build_argparser().parse_args(argv)
    level = logging.WARNING - 10 * min(args.verbose, 2)
    logging.basicConfig(level=level, format="%(levelname)s %(name)s: %(message)s")
    _COMMANDS[args.command](args)


if __name__ == "__main__":
    main()
