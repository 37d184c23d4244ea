"""
Garment asset loading.
Builds the garment node hierarchy the renderer draws and the fitting pipeline moves,
together with the base measurements its scale ratios are taken against.
"""

import logging
import uuid
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import numpy as np

from garment_fit.fit_model.measurements import BodyMeasurements, check_base_measurements
from garment_fit.garments.categories import GarmentCategory, parse_category

logger = logging.getLogger(__name__)


class GarmentNode:
	"""A render node: transform slots, user data and child nodes.

	`uuid` is stable for the lifetime of the node and keys its smoothing state.
	"""

	def __init__(self, name: str, vertices: Optional[np.ndarray] = None, children: Optional[List['GarmentNode']] = None):
		self.uuid = uuid.uuid4().hex
		self.name = name
		self.position = np.zeros(3)
		self.quaternion = np.array([0.0, 0.0, 0.0, 1.0])
		self.scale = np.ones(3)
		self.user_data: Dict[str, Any] = {}
		self.vertices = vertices if vertices is not None else np.zeros((0, 3))
		self.children = children or []

	def traverse(self):
		yield self
		for child in self.children:
			yield from child.traverse()

	def __repr__(self):
		return f"GarmentNode(name={self.name!r}, children={len(self.children)})"


class GarmentAsset:
	"""A loaded garment: its root node, category and base measurements."""

	def __init__(self, model_type: str, root: GarmentNode, base_measurements: BodyMeasurements, source: Optional[str] = None):
		self.model_type = model_type
		self.category = parse_category(model_type)
		self.root = root
		self.base_measurements = check_base_measurements(base_measurements)
		self.source = source

	@property
	def size_adjustment(self) -> float:
		return float(self.root.user_data.get('size_adjustment', 1.0))

	def update_base_measurements(self, measurements: Dict[str, float]):
		"""Merge partial measurements over the current ones."""
		self.base_measurements = check_base_measurements(self.base_measurements.merged(measurements))


def default_base_measurements() -> BodyMeasurements:
	"""Model-intrinsic measurements used while no calibration is in force.

	All bundled garment models share one reference body.
	"""
	return BodyMeasurements.defaults()


def _panel_vertices(width: float, length: float, cols: int = 12, rows: int = 8) -> np.ndarray:
	# flat panel centred on the origin, hanging from y = length / 2
	xs = np.linspace(-width / 2, width / 2, cols)
	ys = np.linspace(length / 2, -length / 2, rows)
	xv, yv = np.meshgrid(xs, ys)
	return np.stack([xv.ravel(), yv.ravel(), np.zeros(xv.size)], axis=-1)


def _glb_children(glb_path: Path) -> List[GarmentNode]:
	try:
		from pygltflib import GLTF2
	except ImportError:
		raise ImportError("pygltflib is not installed. Please install with 'pip install pygltflib'.")
	gltf = GLTF2().load(str(glb_path))
	children = []
	for i, node in enumerate(gltf.nodes or []):
		children.append(GarmentNode(node.name or f'node_{i}'))
	return children


def load_garment(model_type: str = 'tshirt',
				 glb_path: Optional[Union[str, Path]] = None,
				 base_measurements: Optional[Dict[str, float]] = None,
				 size_adjustment: float = 1.0) -> GarmentAsset:
	"""
	Load a garment asset for the try-on session.

	Args:
		model_type: storefront model name ('tshirt', 'jacket', 'pants', ...); selects the category
		glb_path: optional GLB file whose node names become children of the root node
		base_measurements: partial overrides merged over the category defaults
		size_adjustment: initial value of root.user_data['size_adjustment']

	Returns:
		GarmentAsset whose root node carries a flat placeholder panel sized by the base measurements.
	"""
	category = parse_category(model_type)
	base = default_base_measurements().merged(base_measurements)

	if category == GarmentCategory.LOWER_BODY:
		verts = _panel_vertices(base.hip_width, base.leg_length)
	else:
		verts = _panel_vertices(base.shoulder_width, base.torso_length)

	children = []
	source = None
	if glb_path is not None:
		glb_path = Path(glb_path)
		if not glb_path.exists():
			raise FileNotFoundError(f"Garment model not found at {glb_path}")
		children = _glb_children(glb_path)
		source = str(glb_path)

	root = GarmentNode(model_type, vertices=verts, children=children)
	root.user_data['size_adjustment'] = float(size_adjustment)
	root.user_data['category'] = category.value
	logger.info("Loaded garment %r (%s, %d child nodes)", model_type, category.value, len(children))
	return GarmentAsset(model_type, root, base, source=source)
