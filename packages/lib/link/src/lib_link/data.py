"""姿勢データベースと骨格レイアウトに関する定数の定義"""

from typing import Dict, Tuple

# データベース形式の 1 選手あたりの関節 (位置のみで識別される固定順序)
RAW_JOINTS = {
    "left_toe": 0,
    "right_toe": 1,
    "left_heel": 2,
    "right_heel": 3,
    "left_ankle": 4,
    "right_ankle": 5,
    "left_knee": 6,
    "right_knee": 7,
    "left_hip": 8,
    "right_hip": 9,
    "left_shoulder": 10,
    "right_shoulder": 11,
    "left_elbow": 12,
    "right_elbow": 13,
    "left_wrist": 14,
    "right_wrist": 15,
    "left_hand": 16,
    "right_hand": 17,
    "left_fingers": 18,
    "right_fingers": 19,
    "core": 20,
    "neck": 21,
    "head": 22,
}

RAW_JOINT_COUNT = len(RAW_JOINTS)
PLAYER_COUNT = 2

# 簡略チェーン (6 関節) の各点を作る元の関節。複数ある場合は平均を取る
CHAIN_GROUPS: Tuple[Tuple[str, ...], ...] = (
    ("left_toe", "right_toe", "left_heel", "right_heel", "left_ankle", "right_ankle"),
    ("left_knee", "right_knee"),
    ("left_hip", "right_hip", "core"),
    ("left_shoulder", "right_shoulder"),
    ("left_hand", "right_hand", "left_wrist", "right_wrist"),
    ("head",),
)

CHAIN_JOINTS = ("foot", "knee", "hip", "shoulder", "hand", "head")

# 18 関節の拡張骨格 (左右の区別を保ったまま生の関節を直接選択する)
SKELETON18_JOINTS = {
    "left_toe": 0,
    "left_ankle": 1,
    "left_knee": 2,
    "left_hip": 3,
    "core": 4,
    "left_shoulder": 5,
    "left_elbow": 6,
    "left_wrist": 7,
    "left_hand": 8,
    "head": 9,
    "right_hand": 10,
    "right_wrist": 11,
    "right_elbow": 12,
    "right_shoulder": 13,
    "right_hip": 14,
    "right_knee": 15,
    "right_ankle": 16,
    "right_toe": 17,
}

# 旧形式 (事前計算ファイル) の 14 関節骨格。足首と手首を持たない
SKELETON14_JOINTS = {
    "left_foot": 0,
    "left_knee": 1,
    "left_hip": 2,
    "core": 3,
    "left_shoulder": 4,
    "left_elbow": 5,
    "left_hand": 6,
    "head": 7,
    "right_hand": 8,
    "right_elbow": 9,
    "right_shoulder": 10,
    "right_hip": 11,
    "right_knee": 12,
    "right_foot": 13,
}

# 14 関節の名前を生データの関節に対応付ける (足先はつま先で代表する)
SKELETON14_SOURCES = {
    "left_foot": "left_toe",
    "left_knee": "left_knee",
    "left_hip": "left_hip",
    "core": "core",
    "left_shoulder": "left_shoulder",
    "left_elbow": "left_elbow",
    "left_hand": "left_hand",
    "head": "head",
    "right_hand": "right_hand",
    "right_elbow": "right_elbow",
    "right_shoulder": "right_shoulder",
    "right_hip": "right_hip",
    "right_knee": "right_knee",
    "right_foot": "right_toe",
}

# 18 関節骨格の親子関係 (-1 は根)。core を根とし、頭と両肩は互いに親子関係を持たない
SKELETON18_PARENTS: Tuple[int, ...] = (
    1,  # left_toe -> left_ankle
    2,  # left_ankle -> left_knee
    3,  # left_knee -> left_hip
    4,  # left_hip -> core
    -1,  # core
    4,  # left_shoulder -> core
    5,  # left_elbow -> left_shoulder
    6,  # left_wrist -> left_elbow
    7,  # left_hand -> left_wrist
    4,  # head -> core
    11,  # right_hand -> right_wrist
    12,  # right_wrist -> right_elbow
    13,  # right_elbow -> right_shoulder
    4,  # right_shoulder -> core
    4,  # right_hip -> core
    14,  # right_knee -> right_hip
    15,  # right_ankle -> right_knee
    16,  # right_toe -> right_ankle
)

# 描画用の骨 (頭は両肩と線で結ぶ)
SKELETON18_CONNECTIONS = frozenset(
    [
        (0, 1),
        (1, 2),
        (2, 3),
        (3, 4),
        (14, 4),
        (14, 15),
        (15, 16),
        (16, 17),
        (4, 5),
        (5, 6),
        (6, 7),
        (7, 8),
        (4, 13),
        (13, 12),
        (12, 11),
        (11, 10),
        (5, 9),
        (13, 9),
    ]
)

CHAIN_CONNECTIONS = frozenset((i, i + 1) for i in range(len(CHAIN_JOINTS) - 1))

# 14 -> 18 変換で足首・手首を合成する重み (目視で調整された値。体型によっては合わない)
ANKLE_BLEND: Tuple[float, float] = (0.7, 0.3)  # (foot, knee)
WRIST_BLEND: Tuple[float, float] = (0.3, 0.7)  # (elbow, hand)

# 姿勢文字列の符号化
BASE62_ALPHABET = "abcdefghijklmnopqrstuvwxyzABCDEFGHIJKLMNOPQRSTUVWXYZ0123456789"
BASE62_VALUES: Dict[str, int] = {c: i for i, c in enumerate(BASE62_ALPHABET)}
COORDINATE_SCALE = 1000.0  # ミリ単位の固定小数点
COORDINATE_OFFSET = (-2.0, 0.0, -2.0)  # x, z を中心に寄せる

# データベースのテキスト形式
TAG_PREFIX = "tags:"
DATABASE_URL = "https://raw.githubusercontent.com/Eelis/GrappleMap/master/GrappleMap.txt"
DATABASE_POSE_LIMIT = 300

# ドラッグ後の簡易衝突判定で使う関節間距離のしきい値
COLLISION_THRESHOLD = 0.25
