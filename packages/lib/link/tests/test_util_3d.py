import numpy as np
from lib_link.data import CHAIN_CONNECTIONS, SKELETON18_CONNECTIONS
from lib_link.util_3d import prepare_coordinates, segment_vertices


def test_prepare_coordinates():
    coords = prepare_coordinates([[1.0, 2.0, 3.0]], translate=(0.0, -1.0, 0.5), scale=2.0)
    assert coords.dtype == np.float32
    np.testing.assert_allclose(coords, [[2.0, 3.0, 6.5]])


def test_segment_vertices_skip_missing_joints():
    coords = np.arange(9, dtype=np.float32).reshape(3, 3)
    vertices = segment_vertices(coords, {(1, 2), (0, 1), (2, 5)})
    assert vertices == [0.0, 1.0, 2.0, 3.0, 4.0, 5.0, 3.0, 4.0, 5.0, 6.0, 7.0, 8.0]


def test_connection_tables_cover_every_joint():
    assert len(segment_vertices(np.zeros((6, 3)), CHAIN_CONNECTIONS)) == 5 * 6
    joints = {j for edge in SKELETON18_CONNECTIONS for j in edge}
    assert joints == set(range(18))
