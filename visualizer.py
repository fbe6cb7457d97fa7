"""
visualizer.py — Dye Viewer / Minimal Compositor
================================================
Turns the solver's DisplayFrame into an RGB image and shows it live:
  - the dye colour is the base image
  - the active palette tints it via a luminance gradient map
  - velocity magnitude adds a little sheen where the fluid moves
  - audio bands push brightness (bass) and tint strength (highs)

Uses matplotlib FuncAnimation for real-time updates.
"""

import numpy as np
import matplotlib.pyplot as plt
import matplotlib.animation as animation
from matplotlib.colors import LinearSegmentedColormap

from liquidlight import MAX_DELTA_TIME, PALETTE_COUNT, AudioBands, DisplayFrame


# One 4-stop gradient per palette index: dark → mid → bright → highlight
PALETTE_STOPS = [
    ["#000000", "#1a0a00", "#ff6a00", "#ffffff"],   # ember
    ["#000000", "#001a33", "#00a2ff", "#e0f7ff"],   # ocean
    ["#000000", "#1f0033", "#b300ff", "#ffd6ff"],   # violet
    ["#000000", "#002210", "#00ff88", "#eaffef"],   # aurora
    ["#000000", "#330000", "#ff0044", "#fff0a0"],   # lava
    ["#000000", "#222200", "#ffee00", "#ffffff"],   # sodium
    ["#000000", "#002b2b", "#ff00aa", "#aaffff"],   # neon
    ["#0a0a0a", "#333333", "#aaaaaa", "#ffffff"],   # mono
    ["#000000", "#2b1100", "#00ccff", "#ffcc00"],   # oil film
]
if len(PALETTE_STOPS) != PALETTE_COUNT:
    raise ValueError(f"expected {PALETTE_COUNT} palettes, got {len(PALETTE_STOPS)}")

PALETTES = [LinearSegmentedColormap.from_list(f"palette{i}", stops)
            for i, stops in enumerate(PALETTE_STOPS)]


def _resize_nearest(field: np.ndarray, resolution: int) -> np.ndarray:
    """Nearest-neighbour resample of an (R, R, ...) array to resolution²."""
    idx = (np.arange(resolution) * field.shape[0]) // resolution
    return field[idx][:, idx]


def composite(frame: DisplayFrame) -> np.ndarray:
    """
    Shade one frame. Returns an (R_dye, R_dye, 3) float image in [0, 1].
    """
    dye = np.clip(frame.dye * frame.color_intensity, 0.0, None)
    res = dye.shape[0]

    luminance = np.clip(dye.max(axis=-1), 0.0, 1.0)
    tint = PALETTES[frame.palette](luminance)[..., :3]

    # highs make the palette dominate, bass brightens everything
    mix = np.clip(0.35 + 0.5 * frame.audio.highs, 0.0, 1.0)
    image = (1.0 - mix) * np.clip(dye, 0.0, 1.0) + mix * tint
    image *= 1.0 + 0.6 * frame.audio.bass

    # sheen: moving fluid catches the light, scaled by film thickness
    sheen = _resize_nearest(frame.speed, res)
    sheen = np.tanh(sheen * 4.0 * frame.film_thickness)[..., np.newaxis]
    image += 0.15 * sheen * luminance[..., np.newaxis]

    return np.clip(image, 0.0, 1.0)


class FluidVisualizer:
    """
    Real-time viewer of the fluid solver.

    Usage (standalone):
        from liquidlight import FluidSolver
        from visualizer import FluidVisualizer

        solver = FluidSolver(sim_resolution=128, dye_resolution=256)
        viz = FluidVisualizer(solver, force_source=my_emitter)
        viz.run()  # Opens live window
    """

    def __init__(self, solver, force_source=None, audio_source=None):
        """
        Args:
            solver       : FluidSolver instance
            force_source : fn(dt) -> list[Force], called once per frame
            audio_source : fn() -> AudioBands, called once per frame
        """
        self.solver = solver
        self.force_source = force_source or (lambda dt: [])
        self.audio_source = audio_source or AudioBands.silent

        self._setup_figure()
        self.fig.canvas.mpl_connect("key_press_event", self.on_key)

    def _setup_figure(self):
        self.fig, self.ax = plt.subplots(figsize=(7, 7))
        self.fig.patch.set_facecolor('#0a0a0a')
        self.ax.set_facecolor('#0a0a0a')
        self.ax.set_xticks([])
        self.ax.set_yticks([])
        for spine in self.ax.spines.values():
            spine.set_edgecolor('#333333')

        res = self.solver.config.dye_resolution
        self.img = self.ax.imshow(
            np.zeros((res, res, 3)),
            interpolation='bilinear',
            origin='lower',
            aspect='equal'
        )
        self.title_text = self.fig.suptitle(
            "Liquid Light — Frame 0 | palette 1 | 1.0x",
            color='#cccccc', fontsize=10, fontfamily='monospace'
        )
        plt.tight_layout()

    def on_key(self, event):
        """1-9 palette, +/- speed, r reset."""
        key = (event.key or "").lower()
        if key.isdigit() and key != "0":
            self.solver.set_palette(int(key) - 1)
        elif key in ("+", "="):
            self.solver.adjust_speed(0.1)
        elif key == "-":
            self.solver.adjust_speed(-0.1)
        elif key == "r":
            self.solver.reset()

    def update(self, frame_num):
        """Called by FuncAnimation each frame. Steps the solver and redraws."""
        dt = MAX_DELTA_TIME
        audio = self.audio_source()

        metrics = self.solver.step(dt, self.force_source(dt), audio)
        frame = self.solver.render(audio)
        self.img.set_data(composite(frame))

        self.title_text.set_text(
            f"Liquid Light — Frame {metrics['frame']} | palette {frame.palette + 1} | "
            f"{self.solver.speed:.1f}x | {metrics['fps']:.1f} FPS | "
            f"div_max={metrics['divergence_max']:.5f}"
        )
        return [self.img, self.title_text]

    def run(self, fps: int = 30, frames: int = 1000):
        """
        Start the live animation window.

        Args:
            fps    : Target animation frame rate
            frames : Total frames to render
        """
        interval_ms = 1000 // fps
        self.anim = animation.FuncAnimation(
            self.fig,
            self.update,
            frames=frames,
            interval=interval_ms,
            blit=False
        )
        plt.show()

    def save_gif(self, path: str = "liquidlight.gif", fps: int = 30, frames: int = 120):
        """Save animation as a GIF (for reports and demos)."""
        print(f"Rendering {frames} frames to {path}...")
        self.anim = animation.FuncAnimation(
            self.fig, self.update, frames=frames, interval=1000 // fps, blit=False
        )
        writer = animation.PillowWriter(fps=fps)
        self.anim.save(path, writer=writer)
        print(f"Saved: {path}")
