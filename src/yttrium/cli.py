"""
Yttrium CLI - Command-line interface for depth-based object tracking.

Provides commands for tracking objects through recorded datasets, recording
synthetic datasets, and system diagnostics.
"""

import platform
from pathlib import Path
from typing import Optional

import numpy as np
import typer
from rich.console import Console
from rich.table import Table

from yttrium.version import __version__

app = typer.Typer(
    name="yttrium",
    help="Yttrium - Robust Gaussian filter tracking of rigid objects in depth images.",
    add_completion=False,
)

console = Console()


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        console.print(f"[bold blue]Yttrium[/bold blue] v{__version__}")
        raise typer.Exit()


def _parse_vector(text: str, size: int, name: str) -> np.ndarray:
    try:
        values = np.array([float(v) for v in text.split(",")], dtype=np.float64)
    except ValueError:
        raise typer.BadParameter(f"{name} must be comma-separated numbers")
    if values.size != size:
        raise typer.BadParameter(f"{name} needs {size} values, got {values.size}")
    return values


def _object_model(cfg, box: Optional[str]):
    from yttrium.perception.objects import (
        ObjectModel,
        ObjectResourceIdentifier,
        TriangleMesh,
        resolve_object_model,
    )

    if box:
        return ObjectModel(meshes=(TriangleMesh.box(_parse_vector(box, 3, "--box")),))
    identifier = ObjectResourceIdentifier(
        package_path=cfg.object.package_path,
        directory=cfg.object.directory,
        meshes=tuple(cfg.object.meshes),
    )
    return resolve_object_model(identifier)


def _camera_data(cfg, full_resolution: bool = False):
    from yttrium.perception.calib import CameraData

    return [
        CameraData.from_config(
            intrinsics_path=camera.intrinsics_path,
            extrinsics_path=camera.extrinsics_path,
            width=camera.width,
            height=camera.height,
            downsampling_factor=1 if full_resolution else camera.downsampling_factor,
        )
        for camera in cfg.cameras
    ]


@app.callback()
def main(
    version: Optional[bool] = typer.Option(
        None,
        "--version",
        "-V",
        callback=version_callback,
        is_eager=True,
        help="Show version and exit.",
    ),
) -> None:
    """Yttrium - Depth-based rigid object tracking."""
    pass


@app.command()
def track(
    config: Path = typer.Option(
        Path("configs/default.yaml"),
        "--config",
        "-c",
        help="Path to configuration file.",
        exists=True,
        file_okay=True,
        dir_okay=False,
        readable=True,
    ),
    dataset: Path = typer.Option(
        ...,
        "--dataset",
        "-d",
        help="Dataset directory to track through.",
    ),
    box: Optional[str] = typer.Option(
        None,
        "--box",
        help="Track a box of size 'x,y,z' (m) instead of the configured meshes.",
    ),
    initial_pose: Optional[str] = typer.Option(
        None,
        "--initial-pose",
        help="Initial pose 'x,y,z,rx,ry,rz'; defaults to the first ground truth.",
    ),
    log_level: Optional[str] = typer.Option(
        None,
        "--log-level",
        "-l",
        help="Override log level (DEBUG, INFO, WARNING, ERROR).",
    ),
) -> None:
    """Track objects through a recorded dataset and report the final estimate."""
    from yttrium.config.loader import load_config
    from yttrium.dataset import TrackingDataset
    from yttrium.estimation.builder import build
    from yttrium.logging.setup import configure_logging
    from yttrium.utils.math3d import rotation_angle_between

    try:
        cfg = load_config(config)
        if log_level:
            cfg.project.log_level = log_level
        run_dir = cfg.project.output_dir / cfg.project.run_id
        configure_logging(
            cfg.project.log_level,
            cfg.project.run_id,
            json_format=cfg.project.json_logs,
            log_file=run_dir / "events.jsonl",
        )

        console.print(f"[green]✓[/green] Loaded configuration from {config}")
        data = TrackingDataset(dataset).load()
        if len(data) < 2:
            raise ValueError(f"dataset {dataset} needs at least two frames")
        console.print(f"[green]✓[/green] Loaded {len(data)} frames from {dataset}")

        tracker = build(cfg.tracker, _camera_data(cfg), _object_model(cfg, box))
        layout = tracker.layout
        pose_values = layout.object_count * 6

        if initial_pose:
            start = _parse_vector(initial_pose, 6, "--initial-pose").reshape(1, 6)
        elif data.ground_truth(0) is not None:
            start = data.ground_truth(0)[:pose_values].reshape(-1, 6)
        else:
            raise ValueError("no ground truth in frame 0; pass --initial-pose")
        tracker.initialize(start)

        factor = cfg.cameras[0].downsampling_factor
        with console.status("[yellow]Tracking...[/yellow]"):
            for index in range(1, len(data)):
                frame = data.depth_frame(index).downsampled(factor)
                tracker.step(frame.to_observation())

        poses = tracker.poses
        truth = data.ground_truth(len(data) - 1)

        table = Table(title=f"Final estimate after {tracker.cycle} cycles")
        table.add_column("Object", style="cyan")
        table.add_column("Position (m)")
        table.add_column("Rotation vector (rad)")
        table.add_column("Position error (mm)", style="green")
        table.add_column("Rotation error (deg)", style="green")
        for index, pose in enumerate(poses):
            pos_err = rot_err = "n/a"
            if truth is not None and truth.size >= pose_values:
                true_pose = truth[:pose_values].reshape(-1, 6)[index]
                pos_err = f"{np.linalg.norm(pose[:3] - true_pose[:3]) * 1000:.2f}"
                rot_err = (
                    f"{np.degrees(rotation_angle_between(pose[3:], true_pose[3:])):.2f}"
                )
            table.add_row(
                str(index),
                np.array2string(pose[:3], precision=4),
                np.array2string(pose[3:], precision=4),
                pos_err,
                rot_err,
            )
        console.print(table)

        latency = tracker.telemetry.get_latency_stats()
        console.print(
            f"Cycle latency: mean {latency['mean']:.1f} ms, max {latency['max']:.1f} ms"
        )

    except Exception as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(code=1)


@app.command()
def simulate(
    config: Path = typer.Option(
        Path("configs/default.yaml"),
        "--config",
        "-c",
        help="Path to configuration file.",
    ),
    output: Path = typer.Option(
        ...,
        "--output",
        "-o",
        help="Dataset directory to create.",
    ),
    steps: int = typer.Option(60, "--steps", "-n", min=1, help="Number of frames."),
    velocity: str = typer.Option(
        "0,0,0",
        "--velocity",
        help="Linear velocity 'vx,vy,vz' (m/s) of the object.",
    ),
    pose: str = typer.Option(
        "0,0,1,0.5,0.35,0",
        "--pose",
        help="Initial pose 'x,y,z,rx,ry,rz'.",
    ),
    box: Optional[str] = typer.Option(
        "0.2,0.15,0.1",
        "--box",
        help="Box size 'x,y,z' (m); pass '' to use the configured meshes.",
    ),
    noise_std: float = typer.Option(
        0.0, "--noise-std", min=0.0, help="Depth noise std-dev (m)."
    ),
) -> None:
    """Record a synthetic dataset of one object moving at constant velocity."""
    from yttrium.config.loader import load_config, get_default_config
    from yttrium.dataset import TrackingDataset
    from yttrium.sim.synthetic import SyntheticScene, constant_velocity_trajectory

    try:
        cfg = load_config(config) if config.exists() else get_default_config()
        model = _object_model(cfg, box)

        start = np.tile(_parse_vector(pose, 6, "--pose"), (model.object_count, 1))
        rates = np.zeros((model.object_count, 6))
        rates[:, :3] = _parse_vector(velocity, 3, "--velocity")
        trajectory = constant_velocity_trajectory(start, rates, steps, cfg.tracker.dt)

        scene = SyntheticScene(
            model,
            _camera_data(cfg, full_resolution=True),
            background_depth=cfg.tracker.observation.bg_depth,
            noise_std=noise_std,
        )
        with console.status("[yellow]Rendering...[/yellow]"):
            dataset = scene.record(trajectory, cfg.tracker.dt, TrackingDataset(output))
            dataset.store()

        console.print(f"[green]✓[/green] Wrote {len(dataset)} frames to {output}")

    except Exception as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(code=1)


@app.command()
def diagnostics(
    config: Path = typer.Option(
        Path("configs/default.yaml"),
        "--config",
        "-c",
        help="Path to configuration file.",
    ),
) -> None:
    """Run system diagnostics and configuration validation."""
    from yttrium.config.loader import load_config
    from yttrium.errors import CapabilityUnavailable
    from yttrium.perception.rendering.gpu_renderer import _load_cupy

    console.print("[bold]Yttrium System Diagnostics[/bold]\n")

    table = Table(title="System Information")
    table.add_column("Component", style="cyan")
    table.add_column("Status", style="green")

    table.add_row("Yttrium Version", __version__)
    table.add_row("Python", platform.python_version())
    table.add_row("NumPy", np.__version__)

    try:
        cfg = load_config(config)
        table.add_row("Configuration", f"✓ Valid ({config})")
        table.add_row("Render Backend", cfg.tracker.backend.value)
        table.add_row("Cameras", str(len(cfg.cameras)))
        table.add_row("Object Meshes", ", ".join(cfg.object.meshes) or "none")
    except FileNotFoundError:
        table.add_row("Configuration", f"⚠ Not found ({config})")
    except Exception as e:
        table.add_row("Configuration", f"✗ Error: {e}")

    try:
        cp = _load_cupy()
        table.add_row("GPU Rendering", f"✓ {cp.cuda.runtime.getDeviceCount()} device(s)")
    except CapabilityUnavailable as e:
        table.add_row("GPU Rendering", f"✗ {e}")

    try:
        import open3d

        table.add_row("Mesh Loading", f"✓ open3d {open3d.__version__}")
    except ImportError:
        table.add_row("Mesh Loading", "✗ open3d not installed")

    console.print(table)


@app.command(name="version")
def show_version() -> None:
    """Show version information."""
    console.print(f"[bold blue]Yttrium[/bold blue] v{__version__}")
    console.print("Robust Gaussian filter tracking of rigid objects in depth images.")


if __name__ == "__main__":
    app()
