"""Write a synthetic landmark recording (CSV) for replay in the demo app.

Usage: make_synthetic_recording.py <out.csv> [frames] [step_m]

The recording opens with one second of T-pose (for calibration) followed by a
body leaning towards the camera: shoulder width grows by step_m per frame.
"""
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parents[1] / 'src'))

from garment_fit.preprocessing.pose_presets import lean_sequence, pose_preset_landmarks
from garment_fit.preprocessing.recording import save_recording

if len(sys.argv) < 2:
    print('Usage: make_synthetic_recording.py <out.csv> [frames] [step_m]')
    sys.exit(2)

out = Path(sys.argv[1])
frames = int(sys.argv[2]) if len(sys.argv) > 2 else 60
step = float(sys.argv[3]) if len(sys.argv) > 3 else 0.005

sequence = [pose_preset_landmarks('T-pose')] * 30 + lean_sequence(frames=frames, step=step)
save_recording(sequence, out)
print(f'Wrote {len(sequence)} frames to {out}')
