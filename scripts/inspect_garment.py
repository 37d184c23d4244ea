import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parents[1] / 'src'))

from garment_fit.garments.garment_loader import load_garment

if len(sys.argv) < 2:
    print('Usage: inspect_garment.py <model_type> [path_to_glb]')
    sys.exit(2)

model_type = sys.argv[1]
glb = Path(sys.argv[2]) if len(sys.argv) > 2 else None
if glb is not None and not glb.exists():
    print('MISSING', glb)
    sys.exit(1)

try:
    asset = load_garment(model_type, glb_path=glb)
except Exception as e:
    print('ERROR_LOADING', e)
    sys.exit(1)

print('Model type:', asset.model_type)
print('Category:', asset.category.value)
print('Source:', asset.source or '(placeholder panel)')
print('Size adjustment:', asset.size_adjustment)
for name, value in asset.base_measurements.as_dict().items():
    print(f'  base {name} = {value:.3f} m')
print('Panel vertices:', asset.root.vertices.shape[0])
for node in asset.root.traverse():
    print(f'Node {node.name} children={len(node.children)}')
