"""
Recorded tracking datasets.

A dataset directory holds

    depth/NNNNNN_sK.png   16-bit depth in millimeters (0 = missing), frame N, sensor K
    frames.yaml           timestamps and camera matrices of every frame
    ground_truth.txt      lines of "timestamp v1 v2 ..." (optional rows)

Ground-truth rows are attached on load to the frame with the nearest
timestamp within admissible_delta_time.
"""

from dataclasses import dataclass
from pathlib import Path
from typing import Iterator, Optional, Sequence, Union

import cv2
import numpy as np
from numpy.typing import NDArray

from yttrium.errors import InvalidDimension, ResourceNotFound
from yttrium.logging.setup import get_logger
from yttrium.perception.camera import DepthFrame, valid_depth_mask
from yttrium.utils.io import ensure_dir, load_yaml, save_yaml

logger = get_logger(__name__)

DEPTH_DIRECTORY = "depth"
FRAMES_FILENAME = "frames.yaml"
GROUND_TRUTH_FILENAME = "ground_truth.txt"

_MM_PER_M = 1000.0
_MAX_DEPTH_MM = np.iinfo(np.uint16).max


@dataclass
class DataFrame:
    """
    One recorded frame.

    Attributes:
        depth: Depth images in meters, shape (S, H, W).
        camera_matrices: Camera matrix per sensor, shape (S, 3, 3).
        timestamp_s: Acquisition time in seconds.
        ground_truth: Optional ground-truth state vector.
    """

    depth: NDArray[np.float64]
    camera_matrices: NDArray[np.float64]
    timestamp_s: float
    ground_truth: Optional[NDArray[np.float64]] = None


def depth_to_millimeters(depth: NDArray[np.float64]) -> NDArray[np.uint16]:
    """Encode metric depth as 16-bit millimeters, 0 for missing values."""
    depth = np.asarray(depth, dtype=np.float64)
    valid = valid_depth_mask(depth)
    millimeters = np.zeros(depth.shape, dtype=np.uint16)
    millimeters[valid] = np.clip(
        np.round(depth[valid] * _MM_PER_M), 0, _MAX_DEPTH_MM
    ).astype(np.uint16)
    return millimeters


def millimeters_to_depth(millimeters: NDArray[np.uint16]) -> NDArray[np.float64]:
    """Decode 16-bit millimeter depth; missing values become NaN."""
    depth = millimeters.astype(np.float64) / _MM_PER_M
    depth[millimeters == 0] = np.nan
    return depth


class TrackingDataset:
    """
    Sequence of depth frames with optional ground truth.

    Example:
        dataset = TrackingDataset("runs/box").load()
        for frame in dataset:
            tracker.step(frame.depth)
    """

    def __init__(
        self, path: Union[str, Path], admissible_delta_time: float = 0.02
    ) -> None:
        self.path = Path(path)
        self.admissible_delta_time = float(admissible_delta_time)
        self._frames: list[DataFrame] = []

    def __len__(self) -> int:
        return len(self._frames)

    def __getitem__(self, index: int) -> DataFrame:
        return self._frames[index]

    def __iter__(self) -> Iterator[DataFrame]:
        return iter(self._frames)

    def add_frame(
        self,
        depth: NDArray[np.float64],
        camera_matrix: Union[NDArray[np.float64], Sequence[NDArray[np.float64]]],
        timestamp_s: float,
        ground_truth: Optional[NDArray[np.float64]] = None,
    ) -> None:
        """
        Append a frame.

        Args:
            depth: Depth in meters, (H, W) or (S, H, W).
            camera_matrix: One 3x3 matrix (shared) or one per sensor.
            timestamp_s: Acquisition time in seconds.
            ground_truth: Optional ground-truth vector.
        """
        depth = DepthFrame(depth_m=depth, timestamp_s=timestamp_s, frame_id=len(self)).depth_m
        matrices = np.asarray(camera_matrix, dtype=np.float64)
        if matrices.shape == (3, 3):
            matrices = np.repeat(matrices[None], depth.shape[0], axis=0)
        if matrices.shape != (depth.shape[0], 3, 3):
            raise InvalidDimension(
                f"expected {depth.shape[0]} camera matrices, got shape {matrices.shape}"
            )
        if self._frames and self._frames[0].depth.shape != depth.shape:
            raise InvalidDimension(
                f"frame shape {depth.shape} differs from {self._frames[0].depth.shape}"
            )
        truth = None
        if ground_truth is not None:
            truth = np.asarray(ground_truth, dtype=np.float64).reshape(-1)

        self._frames.append(
            DataFrame(
                depth=depth.copy(),
                camera_matrices=matrices.copy(),
                timestamp_s=float(timestamp_s),
                ground_truth=truth,
            )
        )

    def depth(self, index: int) -> NDArray[np.float64]:
        """Depth images of frame ``index``, shape (S, H, W)."""
        return self._frames[index].depth

    def depth_frame(self, index: int) -> DepthFrame:
        frame = self._frames[index]
        return DepthFrame(
            depth_m=frame.depth, timestamp_s=frame.timestamp_s, frame_id=index
        )

    def camera_matrix(self, index: int, sensor: int = 0) -> NDArray[np.float64]:
        """Camera matrix of one sensor for frame ``index``."""
        return self._frames[index].camera_matrices[sensor]

    def ground_truth(self, index: int) -> Optional[NDArray[np.float64]]:
        """Ground-truth vector of frame ``index``, if one was attached."""
        return self._frames[index].ground_truth

    def point_cloud(self, index: int, sensor: int = 0) -> NDArray[np.float64]:
        """
        Back-project the valid pixels of one depth image.

        Args:
            index: Frame index.
            sensor: Sensor index.

        Returns:
            Points in the camera frame, shape (N, 3).
        """
        depth = self._frames[index].depth[sensor]
        K = self.camera_matrix(index, sensor)
        v, u = np.nonzero(valid_depth_mask(depth))
        z = depth[v, u]
        x = (u - K[0, 2]) * z / K[0, 0]
        y = (v - K[1, 2]) * z / K[1, 1]
        return np.stack([x, y, z], axis=1)

    def store(self) -> None:
        """
        Write the dataset to its directory.

        Raises:
            FileExistsError: If a dataset already exists at the path.
        """
        frames_path = self.path / FRAMES_FILENAME
        truth_path = self.path / GROUND_TRUTH_FILENAME
        if frames_path.exists() or truth_path.exists():
            raise FileExistsError(
                f"Dataset {self.path} already exists, will not overwrite"
            )

        depth_dir = ensure_dir(self.path / DEPTH_DIRECTORY)
        records = []
        for index, frame in enumerate(self._frames):
            for sensor, image in enumerate(frame.depth):
                image_path = depth_dir / _image_name(index, sensor)
                if not cv2.imwrite(str(image_path), depth_to_millimeters(image)):
                    raise OSError(f"Could not write depth image {image_path}")
            records.append(
                {
                    "index": index,
                    "timestamp": frame.timestamp_s,
                    "cameras": [
                        {
                            "camera_matrix": K.tolist(),
                            "width": int(frame.depth.shape[2]),
                            "height": int(frame.depth.shape[1]),
                        }
                        for K in frame.camera_matrices
                    ],
                }
            )

        save_yaml(
            {
                "sensors": int(self._frames[0].depth.shape[0]) if self._frames else 0,
                "frames": records,
            },
            frames_path,
        )

        with open(truth_path, "w", encoding="utf-8") as f:
            for frame in self._frames:
                if frame.ground_truth is None:
                    continue
                values = " ".join(f"{v:.9g}" for v in frame.ground_truth)
                f.write(f"{frame.timestamp_s:.6f} {values}\n")

        logger.info("dataset_stored", path=str(self.path), frames=len(self))

    def load(self) -> "TrackingDataset":
        """
        Read the dataset from its directory, replacing in-memory frames.

        Returns:
            self, for chaining.

        Raises:
            ResourceNotFound: If the directory, the frame index, an image or
                the ground-truth file is missing.
        """
        if not self.path.is_dir():
            raise ResourceNotFound(f"Dataset directory not found: {self.path}")

        meta = load_yaml(self.path / FRAMES_FILENAME)
        sensors = int(meta.get("sensors", 1))

        frames: list[DataFrame] = []
        for record in meta.get("frames", []):
            index = int(record["index"])
            images = []
            for sensor in range(sensors):
                image_path = self.path / DEPTH_DIRECTORY / _image_name(index, sensor)
                millimeters = cv2.imread(str(image_path), cv2.IMREAD_UNCHANGED)
                if millimeters is None:
                    raise ResourceNotFound(f"Depth image not found: {image_path}")
                images.append(millimeters_to_depth(millimeters))
            frames.append(
                DataFrame(
                    depth=np.stack(images),
                    camera_matrices=np.array(
                        [c["camera_matrix"] for c in record["cameras"]],
                        dtype=np.float64,
                    ),
                    timestamp_s=float(record["timestamp"]),
                )
            )

        rows = _read_ground_truth(self.path / GROUND_TRUTH_FILENAME)
        attached = self._attach_ground_truth(frames, rows)
        self._frames = frames

        logger.info(
            "dataset_loaded",
            path=str(self.path),
            frames=len(frames),
            ground_truth_rows=len(rows),
            ground_truth_attached=attached,
        )
        return self

    def _attach_ground_truth(
        self,
        frames: list[DataFrame],
        rows: list[tuple[float, NDArray[np.float64]]],
    ) -> int:
        """Attach the nearest row within tolerance to every frame."""
        if not rows:
            return 0
        stamps = np.array([stamp for stamp, _ in rows])
        attached = 0
        for frame in frames:
            deltas = np.abs(stamps - frame.timestamp_s)
            nearest = int(np.argmin(deltas))
            if deltas[nearest] <= self.admissible_delta_time:
                frame.ground_truth = rows[nearest][1].copy()
                attached += 1
        return attached


def _image_name(index: int, sensor: int) -> str:
    return f"{index:06d}_s{sensor}.png"


def _read_ground_truth(path: Path) -> list[tuple[float, NDArray[np.float64]]]:
    if not path.is_file():
        raise ResourceNotFound(f"Ground truth file not found: {path}")

    rows = []
    with open(path, "r", encoding="utf-8") as f:
        for line in f:
            values = line.split()
            if not values:
                continue
            rows.append(
                (float(values[0]), np.array([float(v) for v in values[1:]]))
            )
    return rows
