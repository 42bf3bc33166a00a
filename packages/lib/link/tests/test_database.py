import numpy as np
from lib_link.codec import derive_chain, derive_skeleton18, encode_positions
from lib_link.database import decode_pose, parse_database


def _database(block, raw_pose) -> str:
    return "\n".join(
        [
            "Closed guard",
            "bottom player breaks posture",
            "tags: closed_guard bottom",
            block(raw_pose(0)),
            "Broken entry",
            "    aa!" + "a" * 40,
            "Mount",
            "tags: mount",
            block(raw_pose(1), indent="\t"),
            "",
            "Side control",
            block(raw_pose(2)),
        ]
    )


def test_decode_pose_derives_both_players(raw_pose):
    points = raw_pose(5)
    pose = decode_pose("Test", encode_positions(points))

    assert pose.name == "Test"
    np.testing.assert_allclose(pose.chain1, derive_chain(points[:23]), atol=1e-9)
    np.testing.assert_allclose(pose.chain2, derive_chain(points[23:]), atol=1e-9)
    np.testing.assert_allclose(pose.skeleton2, derive_skeleton18(points[23:]), atol=1e-9)
    assert pose.features is None


def test_parse_database(block, raw_pose, capsys):
    collection = parse_database(_database(block, raw_pose))

    assert len(collection) == 3
    assert collection[0].name == "Closed guard\nbottom player breaks posture"
    assert collection.names() == [
        "Closed guard / bottom player breaks posture",
        "Mount",
        "Side control",
    ]
    np.testing.assert_allclose(collection[1].chain1, derive_chain(raw_pose(1)[:23]), atol=1e-9)

    err = capsys.readouterr().err
    assert "Failed to decode position for entry 'Broken entry'" in err


def test_parse_database_limit(block, raw_pose):
    collection = parse_database(_database(block, raw_pose), limit=2)
    assert [pose.name for pose in collection] == [
        "Closed guard\nbottom player breaks posture",
        "Mount",
    ]


def test_unnamed_pose_gets_a_default_name(block, raw_pose):
    collection = parse_database(block(raw_pose(0)) + "\n")
    assert collection.names() == ["Pose 1"]


def test_empty_database():
    assert len(parse_database("")) == 0
    assert len(parse_database("Only a name\ntags: nothing\n")) == 0
