"""
Command line entry point: python -m mandelbrot_viewer [options]
"""

import cProfile
import logging
from argparse import ArgumentParser

from .colormaps import list_palette_names
from .config import (
    COLORING_MODES,
    RENDER_STRATEGIES,
    SCROLL_ZOOM_MODES,
    ConfigError,
    ViewerConfig,
    load_settings,
)


logger = logging.getLogger(__name__)


def build_parser():
    parser = ArgumentParser(
        prog='mandelbrot-viewer',
        description='Interactive Mandelbrot set explorer.',
    )

    parser.add_argument('-w', '--width', type=int,
                        dest='width', help='width (in pixels) for rendering',
                        metavar='WIDTH')

    parser.add_argument('-H', '--height', type=int,
                        dest='height', help='height (in pixels) for rendering',
                        metavar='HEIGHT')

    parser.add_argument('-i', '--max-iterations', type=int,
                        dest='max_iterations', help='starting iteration cap',
                        metavar='MAX_ITERATIONS')

    parser.add_argument('--palette', choices=list_palette_names(),
                        dest='palette', help='color palette')

    parser.add_argument('--coloring', choices=COLORING_MODES,
                        dest='coloring', help='blend palette entries (smooth) or index them (discrete)')

    parser.add_argument('--scroll-zoom', choices=SCROLL_ZOOM_MODES,
                        dest='scroll_zoom', help='point the mouse wheel zooms around')

    parser.add_argument('--strategy', choices=RENDER_STRATEGIES,
                        dest='strategy', help='how a frame is split across CPU cores')

    parser.add_argument('--workers', type=int,
                        dest='workers', help='render threads (default: one per CPU)',
                        metavar='N')

    parser.add_argument('--settings',
                        dest='settings', help='JSON settings file',
                        metavar='PATH')

    parser.add_argument('--screenshot-dir',
                        dest='screenshot_dir', help='directory screenshots are saved to',
                        metavar='DIR')

    parser.add_argument('--no-debug', action='store_false', default=None,
                        dest='show_debug', help='start with the debug overlay hidden')

    parser.add_argument('--cpuprofile',
                        dest='cpuprofile', help='write cpu profile to file',
                        metavar='PATH')

    parser.add_argument('-v', '--verbose', action='store_true',
                        dest='verbose', help='log debug output')

    return parser


def config_from_args(args):
    """Merge the settings file (if any) and command line options into a ViewerConfig."""
    settings = load_settings(args.settings) if args.settings else {}
    return ViewerConfig.from_settings(
        settings,
        width=args.width,
        height=args.height,
        max_iterations=args.max_iterations,
        palette=args.palette,
        coloring=args.coloring,
        scroll_zoom=args.scroll_zoom,
        strategy=args.strategy,
        workers=args.workers,
        screenshot_dir=args.screenshot_dir,
        show_debug=args.show_debug,
    )


def main(argv=None):
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format='%(asctime)s %(levelname)s %(name)s: %(message)s',
    )

    try:
        config = config_from_args(args)
    except ConfigError as e:
        parser.error(str(e))

    logger.info(
        "Starting %dx%d viewer, palette %s, %s coloring, %s rendering",
        config.width, config.height, config.palette, config.coloring, config.strategy
    )

    # Imported here so --help works without opening a display
    from .app import run

    if args.cpuprofile:
        profiler = cProfile.Profile()
        profiler.enable()
        try:
            run(config)
        finally:
            profiler.disable()
            profiler.dump_stats(args.cpuprofile)
            logger.info("CPU profile written to %s", args.cpuprofile)
    else:
        run(config)
    return 0
