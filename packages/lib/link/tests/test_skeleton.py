import numpy as np
import pytest
from lib_link.codec import skeleton_from_chain
from lib_link.data import SKELETON18_JOINTS, SKELETON18_PARENTS
from lib_link.skeleton import Ring, SkeletonTree

J = SKELETON18_JOINTS


def _bone_lengths(tree: SkeletonTree) -> np.ndarray:
    joints = tree.joints
    return np.array(
        [
            0.0 if parent < 0 else np.linalg.norm(joints[child] - joints[parent])
            for child, parent in enumerate(tree.parents)
        ]
    )


@pytest.fixture
def tree(t_pose) -> SkeletonTree:
    return SkeletonTree.from_layout18(t_pose)


@pytest.fixture
def small_ring_tree() -> SkeletonTree:
    # root, left shoulder, right shoulder, head
    joints = [(0.0, 0.0, 0.0), (-1.0, 0.0, 0.0), (1.0, 0.0, 0.0), (0.0, 1.0, 0.0)]
    return SkeletonTree(joints, (-1, 0, 0, 0), ring=Ring(head=3, left_shoulder=1, right_shoulder=2))


def test_layout18_hierarchy(tree):
    assert tree.root == J["core"]
    assert tree.parents == SKELETON18_PARENTS
    assert set(tree.children(J["core"])) == {
        J["left_hip"],
        J["right_hip"],
        J["left_shoulder"],
        J["right_shoulder"],
        J["head"],
    }
    assert tree.children(J["left_toe"]) == ()
    assert tree.is_root(J["core"])
    assert not tree.is_root(J["head"])


def test_ring_width_from_initial_pose(tree):
    assert tree.ring_width == pytest.approx(0.4)
    left, right = tree.ring_distances()
    assert left == pytest.approx(np.hypot(0.2, 0.25))
    assert right == pytest.approx(left)


def test_ring_width_keeps_wide_head_spans():
    joints = [(0.0, 0.0, 0.0), (-0.1, 0.0, 0.0), (0.1, 0.0, 0.0), (0.0, 1.0, 0.0)]
    tree = SkeletonTree(joints, (-1, 0, 0, 0), ring=Ring(3, 1, 2))
    assert tree.ring_width == pytest.approx(np.hypot(0.1, 1.0))


def test_root_move_translates_everything(tree, t_pose):
    tree.move(J["core"], (0.3, -0.2, 0.5))
    np.testing.assert_allclose(tree.joints, t_pose + [0.3, -0.2, 0.5])


def test_subtree_follows_moved_joint(tree, t_pose):
    before = tree.joints
    tree.move(J["left_shoulder"], (0.0, 0.0, 0.05))
    moved = tree.joints - before

    real = moved[J["left_shoulder"]]
    assert np.linalg.norm(real) > 0.0
    for name in ("left_elbow", "left_wrist", "left_hand"):
        np.testing.assert_allclose(moved[J[name]], real, atol=1e-12)
    for name in ("head", "right_shoulder", "right_hand", "core", "left_hip", "left_toe"):
        np.testing.assert_array_equal(tree.joints[J[name]], t_pose[J[name]])


def test_moved_joint_stays_on_its_bone(tree):
    tree.move(J["left_knee"], (0.2, 0.1, 0.3))
    np.testing.assert_allclose(_bone_lengths(tree), tree.bone_lengths, atol=1e-12)


def test_head_cannot_leave_the_ring(tree, t_pose):
    tree.move(J["head"], (1.0, 0.0, 0.0))
    np.testing.assert_array_equal(tree.joints[J["head"]], t_pose[J["head"]])
    assert max(tree.ring_distances()) <= tree.ring_width + 1e-9


def test_inward_ring_move_is_not_clamped(small_ring_tree):
    plain = SkeletonTree(small_ring_tree.joints, small_ring_tree.parents)
    small_ring_tree.move(1, (0.3, 0.3, 0.0))
    plain.move(1, (0.3, 0.3, 0.0))
    np.testing.assert_allclose(small_ring_tree.joints, plain.joints)


def test_outward_ring_move_is_clamped(small_ring_tree):
    before = small_ring_tree.joints
    small_ring_tree.move(1, (-0.5, -3.0, 0.0))

    after = small_ring_tree.joints
    assert not np.allclose(after[1], before[1])
    assert np.linalg.norm(after[1] - after[3]) <= small_ring_tree.ring_width + 1e-9
    assert np.linalg.norm(after[1] - after[0]) == pytest.approx(1.0)


@pytest.mark.parametrize("seed", [0, 1, 2])
def test_random_moves_keep_bones_and_ring(tree, seed):
    rng = np.random.default_rng(seed)
    lengths = tree.bone_lengths
    for _ in range(300):
        index = int(rng.integers(len(tree)))
        tree.move(index, rng.normal(scale=0.1, size=3))
        np.testing.assert_allclose(_bone_lengths(tree), lengths, atol=1e-9)
        assert max(tree.ring_distances()) <= tree.ring_width + 1e-9


def test_snapshot_restore(tree):
    snapshot = tree.snapshot()
    tree.move(J["right_hand"], (0.5, 0.5, 0.5))
    tree.restore(snapshot)
    np.testing.assert_array_equal(tree.joints, snapshot)
    with pytest.raises(ValueError):
        tree.restore(snapshot[:4])


@pytest.mark.parametrize(
    "parents",
    [
        (-1, -1, 0),  # two roots
        (0, 1, 2),  # no root
        (-1, 5, 0),  # parent out of range
        (-1, 1, 0),  # self parent
        (-1, 2, 1),  # cycle
    ],
)
def test_invalid_hierarchy(parents):
    with pytest.raises(ValueError):
        SkeletonTree(np.zeros((3, 3)), parents)


def test_invalid_construction():
    with pytest.raises(ValueError):
        SkeletonTree(np.zeros((3, 3)), (-1, 0))
    with pytest.raises(ValueError):
        SkeletonTree(np.zeros((3, 3)), (-1, 0, 0), ring=Ring(5, 1, 2))


def test_ring_distances_without_ring():
    tree = SkeletonTree([(0.0, 0.0, 0.0), (0.0, 1.0, 0.0)], (-1, 0))
    with pytest.raises(RuntimeError):
        tree.ring_distances()
    with pytest.raises(IndexError):
        tree.move(2, (0.0, 0.0, 0.0))


def test_mirrored_figure_ring_uses_head_spans(fallback_collection):
    initial = fallback_collection[0]
    tree = SkeletonTree.from_layout18(skeleton_from_chain(initial.chain1))

    joints = tree.joints
    np.testing.assert_array_equal(joints[J["left_shoulder"]], joints[J["right_shoulder"]])
    assert tree.ring_width == pytest.approx(1.0)


@pytest.mark.parametrize("delta", [(0.1, 0.0, 0.0), (0.0, 0.0, -0.1), (0.0, -0.2, 0.0)])
def test_head_at_the_ring_boundary_stays_put(fallback_collection, delta):
    initial = fallback_collection[0]
    tree = SkeletonTree.from_layout18(skeleton_from_chain(initial.chain1))
    head = tree.joints[J["head"]]

    tree.move(J["head"], delta)
    np.testing.assert_allclose(tree.joints[J["head"]], head, atol=1e-12)
