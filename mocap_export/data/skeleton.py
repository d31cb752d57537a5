"""
Skeleton data structures and definitions.

Provides the two bone hierarchies the exporters write:
- POSITIONAL_SKELETON: 15 bones bound directly to landmarks (BVH)
- ROTATION_SKELETON: 20 bones using Mixamo rig names (binary animation)

Each hierarchy is an immutable Skeleton built once at import time. Bones
are addressed by integer index; parent, children, primary child and the
pre-order traversal are precomputed as index tables.
"""

from dataclasses import dataclass
from typing import Dict, Iterator, List, Optional, Sequence, Tuple, Union

import numpy as np

from mocap_export.core.types import PoseLandmark
from mocap_export.core.virtual_joints import VirtualJoint


Vector3 = Tuple[float, float, float]
BoneSource = Union[PoseLandmark, VirtualJoint]


def _unit(x: float, y: float, z: float) -> Vector3:
    norm = float(np.linalg.norm([x, y, z]))
    return (x / norm, y / norm, z / norm)


@dataclass(frozen=True)
class BoneSpec:
    """
    Declaration of a single bone.

    Attributes:
        name: Bone name (unique within a skeleton)
        parent: Parent bone name (None for the root)
        source: Landmark or virtual joint that positions this bone
        rest_direction: Unit direction to the primary child in the rest pose
        fixed_direction: Hardcoded current-frame direction for bones without
            a child to aim at
        position_offset: Constant offset added in target space
    """
    name: str
    parent: Optional[str] = None
    source: Optional[BoneSource] = None
    rest_direction: Optional[Vector3] = None
    fixed_direction: Optional[Vector3] = None
    position_offset: Vector3 = (0.0, 0.0, 0.0)


class Skeleton:
    """
    Immutable, validated bone tree.

    Bones keep their declaration order as their index. Construction fails
    with ValueError unless names are unique, there is exactly one root,
    every parent resolves and every bone is reachable from the root.
    """

    def __init__(self, name: str, bones: Sequence[BoneSpec]):
        self.name = name
        self._bones: Tuple[BoneSpec, ...] = tuple(bones)

        if not self._bones:
            raise ValueError(f"Skeleton '{name}' has no bones")

        self._index: Dict[str, int] = {}
        for i, bone in enumerate(self._bones):
            if bone.name in self._index:
                raise ValueError(f"Duplicate bone name: {bone.name}")
            self._index[bone.name] = i

        roots = [i for i, bone in enumerate(self._bones) if bone.parent is None]
        if len(roots) != 1:
            raise ValueError(
                f"Skeleton '{name}' must have exactly one root, found {len(roots)}"
            )
        self._root = roots[0]

        parents: List[int] = []
        children: List[List[int]] = [[] for _ in self._bones]
        for i, bone in enumerate(self._bones):
            if bone.parent is None:
                parents.append(-1)
                continue
            if bone.parent not in self._index:
                raise ValueError(f"Bone '{bone.name}' has unknown parent '{bone.parent}'")
            parent_index = self._index[bone.parent]
            parents.append(parent_index)
            children[parent_index].append(i)

        self._parents = tuple(parents)
        self._children = tuple(tuple(c) for c in children)

        # Bones caught in a cycle are never reached from the root
        order: List[int] = []
        self._visit(self._root, order)
        if len(order) != len(self._bones):
            unreachable = sorted(set(range(len(self._bones))) - set(order))
            names = ", ".join(self._bones[i].name for i in unreachable)
            raise ValueError(f"Bones not reachable from root (cycle?): {names}")
        self._preorder = tuple(order)

        for bone in self._bones:
            for label, vector in (("rest", bone.rest_direction), ("fixed", bone.fixed_direction)):
                if vector is not None and abs(np.linalg.norm(vector) - 1.0) > 1e-9:
                    raise ValueError(f"{label} direction of '{bone.name}' is not unit length")

        self._primary_children = tuple(c[0] if c else -1 for c in self._children)

    def _visit(self, index: int, order: List[int]):
        order.append(index)
        for child in self._children[index]:
            self._visit(child, order)

    def __len__(self) -> int:
        return len(self._bones)

    def __iter__(self) -> Iterator[BoneSpec]:
        return iter(self._bones)

    def __contains__(self, name: str) -> bool:
        return name in self._index

    def __repr__(self) -> str:
        return f"Skeleton({self.name!r}, {len(self)} bones)"

    @property
    def num_bones(self) -> int:
        return len(self._bones)

    @property
    def bones(self) -> Tuple[BoneSpec, ...]:
        return self._bones

    @property
    def names(self) -> List[str]:
        """Bone names in declaration order."""
        return [bone.name for bone in self._bones]

    @property
    def root(self) -> int:
        """Index of the root bone."""
        return self._root

    @property
    def root_name(self) -> str:
        return self._bones[self._root].name

    @property
    def parents(self) -> Tuple[int, ...]:
        """Parent index per bone (-1 for the root)."""
        return self._parents

    def index_of(self, name: str) -> int:
        """Get bone index by name. Raises KeyError for unknown names."""
        return self._index[name]

    def bone(self, name: str) -> BoneSpec:
        return self._bones[self._index[name]]

    def parent_of(self, index: int) -> Optional[int]:
        parent = self._parents[index]
        return parent if parent >= 0 else None

    def children(self, index: int) -> Tuple[int, ...]:
        """Child indices in declaration order."""
        return self._children[index]

    def primary_child(self, index: int) -> Optional[int]:
        """First declared child of a bone, or None for leaves."""
        child = self._primary_children[index]
        return child if child >= 0 else None

    def is_leaf(self, index: int) -> bool:
        return not self._children[index]

    def preorder(self) -> Tuple[int, ...]:
        """Depth-first pre-order traversal: root first, children in declaration order."""
        return self._preorder

    def preorder_names(self) -> List[str]:
        return [self._bones[i].name for i in self._preorder]

    def rest_directions(self) -> np.ndarray:
        """(B, 3) array of rest directions (zero where undefined)."""
        return np.array(
            [bone.rest_direction or (0.0, 0.0, 0.0) for bone in self._bones],
            dtype=np.float64,
        )


# ---------------------------------------------------------------------------
# Positional hierarchy (BVH)
# ---------------------------------------------------------------------------

POSITIONAL_BONES = (
    BoneSpec("Hips", None, VirtualJoint.HIP_CENTER),
    BoneSpec("Spine", "Hips", VirtualJoint.NECK_CENTER),
    BoneSpec("Head", "Spine", PoseLandmark.NOSE),
    BoneSpec("LeftShoulder", "Spine", PoseLandmark.LEFT_SHOULDER),
    BoneSpec("LeftElbow", "LeftShoulder", PoseLandmark.LEFT_ELBOW),
    BoneSpec("LeftWrist", "LeftElbow", PoseLandmark.LEFT_WRIST),
    BoneSpec("RightShoulder", "Spine", PoseLandmark.RIGHT_SHOULDER),
    BoneSpec("RightElbow", "RightShoulder", PoseLandmark.RIGHT_ELBOW),
    BoneSpec("RightWrist", "RightElbow", PoseLandmark.RIGHT_WRIST),
    BoneSpec("LeftHip", "Hips", PoseLandmark.LEFT_HIP),
    BoneSpec("LeftKnee", "LeftHip", PoseLandmark.LEFT_KNEE),
    BoneSpec("LeftAnkle", "LeftKnee", PoseLandmark.LEFT_ANKLE),
    BoneSpec("RightHip", "Hips", PoseLandmark.RIGHT_HIP),
    BoneSpec("RightKnee", "RightHip", PoseLandmark.RIGHT_KNEE),
    BoneSpec("RightAnkle", "RightKnee", PoseLandmark.RIGHT_ANKLE),
)


# ---------------------------------------------------------------------------
# Rotation hierarchy (Mixamo rig names)
# ---------------------------------------------------------------------------

MIXAMO_PREFIX = "mixamorig:"

UP = (0.0, 1.0, 0.0)
DOWN = (0.0, -1.0, 0.0)
LEFT = (1.0, 0.0, 0.0)
RIGHT = (-1.0, 0.0, 0.0)
FORWARD = (0.0, 0.0, 1.0)

# Direction from each bone to its primary child in the rest (T) pose.
# Y up, Z forward; the character's left side is +X.
REST_DIRECTIONS: Dict[str, Vector3] = {
    "Hips": UP,
    "Spine": UP,
    "Spine1": UP,
    "Spine2": UP,
    "Neck": UP,
    "Head": UP,
    "LeftShoulder": _unit(1.0, 1.0, 0.0),
    "LeftArm": LEFT,
    "LeftForeArm": LEFT,
    "LeftHand": LEFT,
    "RightShoulder": _unit(-1.0, 1.0, 0.0),
    "RightArm": RIGHT,
    "RightForeArm": RIGHT,
    "RightHand": RIGHT,
    "LeftUpLeg": _unit(1.0, -1.0, 0.0),
    "LeftLeg": DOWN,
    "LeftFoot": FORWARD,
    "RightUpLeg": _unit(-1.0, -1.0, 0.0),
    "RightLeg": DOWN,
    "RightFoot": FORWARD,
}

# Hands have no wrist-to-fingertip landmark pair; they sit a fixed
# distance past the wrist along the arm's rest direction.
HAND_OFFSET = 5.0


def _rig_bone(
    name: str,
    parent: Optional[str],
    source: BoneSource,
    fixed_direction: Optional[Vector3] = None,
    position_offset: Vector3 = (0.0, 0.0, 0.0),
) -> BoneSpec:
    return BoneSpec(
        name=MIXAMO_PREFIX + name,
        parent=MIXAMO_PREFIX + parent if parent else None,
        source=source,
        rest_direction=REST_DIRECTIONS[name],
        fixed_direction=fixed_direction,
        position_offset=position_offset,
    )


ROTATION_BONES = (
    _rig_bone("Hips", None, VirtualJoint.HIP_CENTER),
    _rig_bone("Spine", "Hips", VirtualJoint.SPINE_LOWER),
    _rig_bone("Spine1", "Spine", VirtualJoint.SPINE_MID),
    _rig_bone("Spine2", "Spine1", VirtualJoint.SPINE_UPPER),
    _rig_bone("Neck", "Spine2", VirtualJoint.NECK_CENTER),
    _rig_bone("Head", "Neck", VirtualJoint.HEAD),

    _rig_bone("LeftShoulder", "Spine2", PoseLandmark.LEFT_SHOULDER),
    _rig_bone("LeftArm", "LeftShoulder", PoseLandmark.LEFT_ELBOW),
    _rig_bone("LeftForeArm", "LeftArm", PoseLandmark.LEFT_WRIST),
    _rig_bone("LeftHand", "LeftForeArm", PoseLandmark.LEFT_WRIST,
              position_offset=(HAND_OFFSET, 0.0, 0.0)),

    _rig_bone("RightShoulder", "Spine2", PoseLandmark.RIGHT_SHOULDER),
    _rig_bone("RightArm", "RightShoulder", PoseLandmark.RIGHT_ELBOW),
    _rig_bone("RightForeArm", "RightArm", PoseLandmark.RIGHT_WRIST),
    _rig_bone("RightHand", "RightForeArm", PoseLandmark.RIGHT_WRIST,
              position_offset=(-HAND_OFFSET, 0.0, 0.0)),

    _rig_bone("LeftUpLeg", "Hips", PoseLandmark.LEFT_HIP),
    _rig_bone("LeftLeg", "LeftUpLeg", PoseLandmark.LEFT_KNEE),
    _rig_bone("LeftFoot", "LeftLeg", PoseLandmark.LEFT_ANKLE, fixed_direction=FORWARD),

    _rig_bone("RightUpLeg", "Hips", PoseLandmark.RIGHT_HIP),
    _rig_bone("RightLeg", "RightUpLeg", PoseLandmark.RIGHT_KNEE),
    _rig_bone("RightFoot", "RightLeg", PoseLandmark.RIGHT_ANKLE, fixed_direction=FORWARD),
)


# Pre-built skeleton instances
POSITIONAL_SKELETON = Skeleton("positional", POSITIONAL_BONES)
ROTATION_SKELETON = Skeleton("rotation", ROTATION_BONES)
