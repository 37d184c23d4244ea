import importlib, sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parents[1] / 'src'))

try:
    mp = importlib.import_module('mediapipe')
    print('mediapipe_version:', getattr(mp, '__version__', 'unknown'))
except Exception as e:
    print('IMPORT_ERROR:', repr(e))
    sys.exit(1)

from garment_fit.preprocessing.preprocess import PoseDetector

try:
    detector = PoseDetector(static_image_mode=True)
    detector.close()
    print('pose_solution: ok')
except Exception as e:
    print('POSE_ERROR:', repr(e))
    sys.exit(1)
