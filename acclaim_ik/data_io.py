"""
数据交换功能实现
ASF（骨骼）/ AMC（动作）读取，以及目标轨迹的读取与插值
"""
import json
import logging
import re
import numpy as np
from typing import Dict, List, Tuple

from .errors import LoadError
from .model import Bone, Skeleton, Posture, Motion

log = logging.getLogger(__name__)

# limits 中的一对 (min max)
_LIMIT_PATTERN = re.compile(r'\(\s*([^\s()]+)\s+([^\s()]+)\s*\)')


def _read_lines(path) -> List[str]:
    try:
        with open(path, 'r', encoding='utf-8') as f:
            return f.read().splitlines()
    except (OSError, UnicodeDecodeError) as e:
        raise LoadError(f"cannot read file: {e}", path) from e


def _floats(tokens: List[str], count: int, path, line_no: int) -> np.ndarray:
    if len(tokens) < count:
        raise LoadError(f"expected {count} numbers, got {len(tokens)}", path, line_no)
    try:
        return np.array([float(t) for t in tokens[:count]], dtype=np.float64)
    except ValueError as e:
        raise LoadError(f"malformed number: {e}", path, line_no) from e


def load_skeleton(asf_path, scale: float = 0.2) -> Skeleton:
    """
    从ASF文件加载骨骼定义，构建骨骼层级

    :param asf_path: ASF文件路径
    :param scale: 统一缩放系数，作用于每根骨骼的长度
    :return: 完成连接与预计算的 Skeleton
    :raises LoadError: 文件缺失或格式错误
    """
    lines = _read_lines(asf_path)
    skeleton = Skeleton(scale)

    # 1. 跳过头部信息，:root 段只读取 order
    i = 0
    while i < len(lines):
        stripped = lines[i].strip()
        if stripped.startswith(':bonedata'):
            break
        if stripped.startswith(':root'):
            i = _parse_root_section(lines, i + 1, skeleton.root, asf_path)
            continue
        i += 1
    else:
        raise LoadError("missing :bonedata section", asf_path)

    # 2. 骨骼数据
    bones, i = _parse_bone_data(lines, i + 1, scale, asf_path)
    bones.sort(key=lambda b: b.idx)
    for expected_idx, bone in enumerate(bones, start=1):
        if bone.idx != expected_idx:
            raise LoadError(f"bone ids must be unique and continuous from 1, got id {bone.idx} "
                            f"for bone '{bone.name}' (expected {expected_idx})", asf_path)
        if skeleton.find_bone(bone.name) is not None:
            raise LoadError(f"duplicate bone name '{bone.name}'", asf_path)
        skeleton.add_bone(bone)
        if bone.dof_order:
            skeleton.movable_bones += 1

    # 3. 层级关系
    _parse_hierarchy(lines, i + 1, skeleton, asf_path)

    # 4. 坐标系转换与预计算
    skeleton.compute_local_direction()
    skeleton.compute_local_rotation()
    skeleton.compute_global_facing()

    log.info("%d bones in %s are read", skeleton.get_bone_num(), asf_path)
    return skeleton


def _parse_root_section(lines: List[str], i: int, root: Bone, path) -> int:
    """读取 :root 段的 order 行，返回下一段的起始行号"""
    while i < len(lines):
        stripped = lines[i].strip()
        if stripped.startswith(':'):
            return i
        tokens = stripped.split()
        if tokens and tokens[0].lower() == 'order':
            root.dofrx = root.dofry = root.dofrz = False
            root.doftx = root.dofty = root.doftz = False
            root.dof = 0
            root.dof_order = []
            for token in tokens[1:]:
                if not root.set_dof(token.lower()):
                    log.warning("%s:%d: unknown root order token '%s'", path, i + 1, token)
        i += 1
    return i


def _parse_bone_data(lines: List[str], i: int, scale: float, path) -> Tuple[List[Bone], int]:
    """读取 :bonedata 段，返回骨骼列表以及 :hierarchy 所在行号"""
    bones: List[Bone] = []
    while i < len(lines):
        stripped = lines[i].strip()
        if not stripped or stripped.startswith('#'):
            i += 1
            continue
        if stripped.startswith(':hierarchy'):
            return bones, i
        if stripped == 'begin':
            bone, i = _parse_bone_record(lines, i + 1, scale, path)
            bones.append(bone)
            continue
        raise LoadError(f"unexpected line in :bonedata: '{stripped}'", path, i + 1)
    raise LoadError("missing :hierarchy section", path)


def _parse_bone_record(lines: List[str], i: int, scale: float, path) -> Tuple[Bone, int]:
    """读取一个 begin ... end 骨骼记录，返回骨骼以及 end 之后的行号"""
    begin_line = i
    fields: Dict[str, object] = {}
    dof_tokens: List[Tuple[str, int]] = []
    limits: List[Tuple[float, float]] = []

    while i < len(lines):
        line_no = i + 1
        tokens = lines[i].split()
        i += 1
        if not tokens or tokens[0].startswith('#'):
            continue
        keyword = tokens[0]

        if keyword == 'end':
            break
        if keyword == 'id':
            try:
                fields['id'] = int(tokens[1])
            except (IndexError, ValueError) as e:
                raise LoadError(f"malformed bone id: {e}", path, line_no) from e
        elif keyword == 'name':
            if len(tokens) < 2:
                raise LoadError("missing bone name", path, line_no)
            fields['name'] = tokens[1]
        elif keyword == 'direction':
            fields['direction'] = _floats(tokens[1:], 3, path, line_no)
        elif keyword == 'length':
            fields['length'] = _floats(tokens[1:], 1, path, line_no)[0] * scale
        elif keyword == 'axis':
            # 第4个字段是旋转顺序（如 XYZ），统一按 Rzyx 处理
            fields['axis'] = _floats(tokens[1:], 3, path, line_no)
        elif keyword == 'dof':
            dof_tokens.extend((token, line_no) for token in tokens[1:])
        elif keyword == 'limits':
            # limits 可以跨多行，后续行以 '(' 开头
            text = ' '.join(tokens[1:])
            while i < len(lines) and lines[i].strip().startswith('('):
                text += ' ' + lines[i].strip()
                i += 1
            try:
                limits = [(float(lo), float(hi)) for lo, hi in _LIMIT_PATTERN.findall(text)]
            except ValueError as e:
                raise LoadError(f"malformed limits: {e}", path, line_no) from e
        else:
            log.warning("%s:%d: unknown token '%s' in bone record, ignored", path, line_no, keyword)
    else:
        raise LoadError("bone record is missing 'end'", path, begin_line)

    for key in ('id', 'name'):
        if key not in fields:
            raise LoadError(f"bone record is missing '{key}'", path, begin_line)

    bone = Bone(
        idx=fields['id'],
        name=fields['name'],
        direction=fields.get('direction'),
        length=fields.get('length', 0.0),
        axis=fields.get('axis')
    )
    for token, line_no in dof_tokens:
        if not bone.set_dof(token):
            log.warning("%s:%d: unknown dof token '%s' in bone '%s', ignored", path, line_no, token, bone.name)
    bone.limits = limits
    return bone, i


def _parse_hierarchy(lines: List[str], i: int, skeleton: Skeleton, path):
    """读取 :hierarchy 段：每行为父骨骼名称 + 若干子骨骼名称"""
    # 跳过 begin
    while i < len(lines) and not lines[i].strip():
        i += 1
    if i >= len(lines) or lines[i].strip() != 'begin':
        raise LoadError("expected 'begin' after :hierarchy", path, i + 1)
    i += 1

    while i < len(lines):
        line_no = i + 1
        tokens = lines[i].split()
        i += 1
        if not tokens or tokens[0].startswith('#'):
            continue
        if tokens[0] == 'end':
            break
        parent = skeleton.find_bone(tokens[0])
        if parent is None:
            raise LoadError(f"undefined parent bone '{tokens[0]}'", path, line_no)
        for child_name in tokens[1:]:
            child = skeleton.find_bone(child_name)
            if child is None:
                raise LoadError(f"undefined child bone '{child_name}'", path, line_no)
            try:
                skeleton.link(parent.idx, child.idx)
            except ValueError as e:
                raise LoadError(str(e), path, line_no) from e
    else:
        raise LoadError(":hierarchy section is missing 'end'", path)

    # 每根骨骼必须能从 root 到达
    reachable = {bone.idx for bone in skeleton.traverse()}
    orphans = [bone.name for bone in skeleton.bones if bone.idx not in reachable]
    if orphans:
        raise LoadError(f"bones not connected to root: {', '.join(orphans)}", path)


def load_motion(amc_path, skeleton: Skeleton) -> Motion:
    """
    从AMC文件加载动作数据

    :param amc_path: AMC文件路径
    :param skeleton: 已加载的骨架（Motion 持有它）
    :return: Motion
    :raises LoadError: 文件缺失、格式错误或不含任何帧
    """
    lines = _read_lines(amc_path)
    postures: List[Posture] = []
    current = None

    for line_no, line in enumerate(lines, start=1):
        stripped = line.strip()
        if not stripped or stripped.startswith('#') or stripped.startswith(':'):
            continue
        tokens = stripped.split()

        # 单独一个整数表示新的一帧
        if len(tokens) == 1 and tokens[0].isdigit():
            current = Posture(skeleton.get_bone_num())
            postures.append(current)
            continue

        if current is None:
            raise LoadError("bone data before the first frame number", amc_path, line_no)

        bone = skeleton.find_bone(tokens[0])
        if bone is None:
            log.warning("%s:%d: unknown bone '%s', line ignored", amc_path, line_no, tokens[0])
            continue

        values = tokens[1:]
        if len(values) < len(bone.dof_order):
            raise LoadError(f"bone '{bone.name}' expects {len(bone.dof_order)} values, got {len(values)}",
                            amc_path, line_no)
        if len(values) > len(bone.dof_order):
            log.warning("%s:%d: extra values for bone '%s' ignored", amc_path, line_no, bone.name)
        numbers = _floats(values, len(bone.dof_order), amc_path, line_no)

        for token, value in zip(bone.dof_order, numbers):
            axis = 'xyz'.index(token[1])
            if token[0] == 'r':
                current.bone_rotations[bone.idx, axis] = value
            elif bone.idx == Skeleton.ROOT_IDX:
                current.root_translation[axis] = value * skeleton.get_scale()

    if not postures:
        raise LoadError("no frames found", amc_path)

    log.info("%d frames in %s are read", len(postures), amc_path)
    return Motion(skeleton, postures)


def load_targets(json_path) -> List[Dict]:
    """
    从targets.json加载目标轨迹

    :param json_path: targets.json文件路径
    :return: 关键帧列表，每个元素为 {"frame": int, "pos": [x,y,z]}
    """
    with open(json_path, 'r', encoding='utf-8') as f:
        data = json.load(f)

    keyframes = []
    for item in data:
        keyframe = {
            'frame': int(item['frame']),
            'pos': np.array(item['pos'], dtype=np.float64)[:3]
        }
        keyframes.append(keyframe)

    if not keyframes:
        raise ValueError(f"No keyframes in {json_path}")

    # 按帧号排序
    keyframes.sort(key=lambda kf: kf['frame'])

    return keyframes


def interpolate_targets(keyframes: List[Dict], frame: int) -> np.ndarray:
    """
    在关键帧之间进行线性插值，生成目标位置

    :param keyframes: 关键帧列表（已排序）
    :param frame: 当前帧号
    :return: 插值后的目标位置 (3,)
    """
    # 超出范围时取端点
    if frame <= keyframes[0]['frame']:
        return keyframes[0]['pos'].copy()

    if frame >= keyframes[-1]['frame']:
        return keyframes[-1]['pos'].copy()

    # 找到区间
    start_kf = keyframes[0]
    end_kf = keyframes[-1]

    for i in range(len(keyframes) - 1):
        if keyframes[i]['frame'] <= frame < keyframes[i+1]['frame']:
            start_kf = keyframes[i]
            end_kf = keyframes[i+1]
            break

    # 计算插值系数
    start_frame = start_kf['frame']
    end_frame = end_kf['frame']

    if end_frame == start_frame:
        alpha = 0.0
    else:
        alpha = (frame - start_frame) / (end_frame - start_frame)

    return (1.0 - alpha) * start_kf['pos'] + alpha * end_kf['pos']
