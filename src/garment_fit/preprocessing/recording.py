"""
Landmark recordings for offline replay.

A recording is a CSV with one row per landmark:
  frame, index, x, y, z, visibility
Frames are replayed in ascending frame order, landmarks in index order.
"""
from pathlib import Path
from typing import List, Sequence, Union

import pandas as pd

from garment_fit.preprocessing.preprocess import Landmark

COLUMNS = ['frame', 'index', 'x', 'y', 'z', 'visibility']


def frames_to_dataframe(frames: Sequence[Sequence[Landmark]]) -> pd.DataFrame:
    rows = []
    for f, keypoints in enumerate(frames):
        for i, lm in enumerate(keypoints):
            rows.append((f, i, lm[0], lm[1], lm[2], lm[3] if len(lm) > 3 else 0.0))
    return pd.DataFrame(rows, columns=COLUMNS)


def save_recording(frames: Sequence[Sequence[Landmark]], path: Union[str, Path]) -> Path:
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    frames_to_dataframe(frames).to_csv(path, index=False)
    return path


def load_recording(source) -> List[List[Landmark]]:
    """Load a recording from a CSV path or file-like object."""
    df = pd.read_csv(source)
    columns = {c.strip().lower(): c for c in df.columns}
    missing = [c for c in COLUMNS if c not in columns and c != 'visibility']
    if missing:
        raise ValueError(f"Recording is missing columns: {', '.join(missing)}")
    df = df.rename(columns={v: k for k, v in columns.items()})
    if 'visibility' not in df.columns:
        df['visibility'] = 0.0
    df['visibility'] = df['visibility'].fillna(0.0)

    frames = []
    for _, group in df.sort_values(['frame', 'index']).groupby('frame', sort=True):
        frames.append([
            Landmark(float(r.x), float(r.y), float(r.z), float(r.visibility))
            for r in group.itertuples(index=False)
        ])
    return frames
