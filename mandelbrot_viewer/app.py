"""
Main application module for the Mandelbrot viewer.

Contains the ViewerApp class which handles:
- Window setup and main loop
- Polling input once per tick and feeding it to the viewport controller
- Blitting the rendered frame and the debug overlay
- Fullscreen toggle and screenshots
"""

import logging
import os
import time
from datetime import datetime

import pygame

from .colormaps import get_palette
from .compute import warmup_jit
from .config import ViewerConfig
from .controls import InputState, apply_input
from .renderer import FrameRenderer
from .viewport import ViewportController


logger = logging.getLogger(__name__)

DEBUG_TEXT_COLOR = (255, 255, 255)
DEBUG_SHADOW_COLOR = (0, 0, 0)


class ViewerApp:
    """
    Main application class for the Mandelbrot viewer.

    Handles the pygame window and the control loop, and coordinates
    between the viewport controller, the frame renderer and the display.
    """

    TITLE = "Mandelbrot"

    def __init__(self, config=None):
        """
        Initialize the application.

        Args:
            config: A ViewerConfig (default settings if None)
        """
        self.config = (config or ViewerConfig()).validate()
        self.width = self.config.width
        self.height = self.config.height

        # Pygame state (initialized in run())
        self.screen = None
        self.clock = None
        self.font = None

        # Components
        self.palette = get_palette(self.config.palette)
        self.controller = ViewportController(self.config)
        self.renderer = None

        self.show_debug = self.config.show_debug
        self.fullscreen = False
        self.current_surface = None
        self._surface_source = None  # buffer the current surface was built from
        self._surface_bytes = None
        self.running = False

    def run(self):
        """Run the application main loop."""
        self._init_pygame()
        self.renderer = FrameRenderer(
            self.width, self.height, self.palette,
            coloring=self.config.coloring,
            strategy=self.config.strategy,
            workers=self.config.workers,
            band_height=self.config.band_height,
        )
        try:
            self._warmup()
            self.running = True
            while self.running:
                state = self._poll_input()
                self.update(state)
                if self.running:
                    self._draw()
                    self.clock.tick(self.config.fps)
        finally:
            self.renderer.close()
            pygame.quit()

    def _init_pygame(self):
        """Initialize pygame and create window."""
        pygame.init()
        self.screen = pygame.display.set_mode((self.width, self.height))
        pygame.display.set_caption(self.TITLE)
        self.clock = pygame.time.Clock()
        self.font = pygame.font.Font(None, 20)

    def _warmup(self):
        """Warm up JIT before the first frame."""
        pygame.display.set_caption("Compiling (first run only)...")
        pygame.display.flip()
        started = time.perf_counter()
        warmup_jit(self.palette)
        logger.debug("JIT warm-up took %.2f s", time.perf_counter() - started)
        pygame.display.set_caption(self.TITLE)

    def _poll_input(self):
        """
        Snapshot the input devices for this tick.

        Events are only consulted for edge-triggered actions and the wheel;
        everything held down is read from the current device state.
        """
        reset = quit_requested = toggle_fullscreen = toggle_debug = screenshot = False
        scroll = 0.0

        for event in pygame.event.get():
            if event.type == pygame.QUIT:
                quit_requested = True
            elif event.type == pygame.MOUSEWHEEL:
                scroll += event.y
            elif event.type == pygame.KEYDOWN:
                if event.key == pygame.K_SPACE:
                    reset = True
                elif event.key in (pygame.K_q, pygame.K_ESCAPE):
                    quit_requested = True
                elif event.key in (pygame.K_RETURN, pygame.K_KP_ENTER):
                    toggle_fullscreen = True
                elif event.key == pygame.K_d:
                    toggle_debug = True
                elif event.key == pygame.K_s:
                    screenshot = True

        keys = pygame.key.get_pressed()
        left, _, right = pygame.mouse.get_pressed()[:3]

        return InputState(
            cursor=pygame.mouse.get_pos(),
            left_button=left,
            right_button=right,
            pan_left=keys[pygame.K_LEFT],
            pan_right=keys[pygame.K_RIGHT],
            pan_up=keys[pygame.K_UP],
            pan_down=keys[pygame.K_DOWN],
            more_iterations=keys[pygame.K_EQUALS] or keys[pygame.K_PLUS] or keys[pygame.K_KP_PLUS],
            fewer_iterations=keys[pygame.K_MINUS] or keys[pygame.K_KP_MINUS],
            scroll=scroll,
            reset=reset,
            quit=quit_requested,
            toggle_fullscreen=toggle_fullscreen,
            toggle_debug=toggle_debug,
            screenshot=screenshot,
        )

    def update(self, state):
        """Handle one control tick: viewport transitions, then app actions."""
        if state.quit:
            self.running = False
            return

        apply_input(self.controller, state, self.config.scroll_zoom)

        if state.toggle_fullscreen:
            self._toggle_fullscreen()
        if state.toggle_debug:
            self.show_debug = not self.show_debug

        buffer = self.renderer.frame(self.controller)
        if buffer is not self._surface_source:
            # frombuffer does not copy, so the bytes must outlive the surface
            self._surface_bytes = buffer.tobytes()
            self._surface_source = buffer
            self.current_surface = pygame.image.frombuffer(
                self._surface_bytes, (self.width, self.height), "RGBA"
            )

        if state.screenshot:
            self.save_screenshot()

    def _toggle_fullscreen(self):
        self.fullscreen = not self.fullscreen
        flags = pygame.FULLSCREEN | pygame.SCALED if self.fullscreen else 0
        self.screen = pygame.display.set_mode((self.width, self.height), flags)

    def save_screenshot(self):
        """Save the current frame as a timestamped PNG."""
        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        directory = self.config.screenshot_dir
        os.makedirs(directory, exist_ok=True)
        filename = os.path.join(directory, f"mandelbrot_{timestamp}.png")
        pygame.image.save(self.current_surface, filename)
        logger.info("Screenshot saved to %s", filename)
        return filename

    def debug_lines(self):
        """Lines of the debug overlay."""
        location = self.controller.cursor_location(*pygame.mouse.get_pos())
        viewport = self.controller.viewport
        return [
            f"FPS: {self.clock.get_fps():.1f}",
            f"Location: {location.re:f}, {location.im:f}",
            f"Zoom: {viewport.zoom:f}",
            f"Max Iterations: {viewport.max_iterations}",
        ]

    def _draw(self):
        """Draw the current frame."""
        self.screen.blit(self.current_surface, (0, 0))
        if self.show_debug:
            y = 4
            for line in self.debug_lines():
                shadow = self.font.render(line, True, DEBUG_SHADOW_COLOR)
                text = self.font.render(line, True, DEBUG_TEXT_COLOR)
                self.screen.blit(shadow, (5, y + 1))
                self.screen.blit(text, (4, y))
                y += text.get_height() + 2
        pygame.display.flip()


def run(config=None):
    """
    Run the Mandelbrot viewer.

    Args:
        config: A ViewerConfig (default settings if None)
    """
    app = ViewerApp(config)
    try:
        app.run()
    except KeyboardInterrupt:
        logger.info("Interrupted")
