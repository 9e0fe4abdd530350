import json
import logging
import os
import sys
import time
import numpy as np

from .errors import LoadError
from .data_io import load_skeleton, load_motion, load_targets, interpolate_targets
from .utils import get_data_path, resolve_path


def run_solver(config_path=None) -> int:
    """
    按配置文件加载骨架与动作，驱动目标点逐帧求解IK

    :param config_path: 配置文件路径；None 时使用包内 data/config.json
    :return: 进程退出码，0 表示成功
    """
    # 1. 加载配置
    if config_path is None:
        config_path = get_data_path('config.json')
    if not os.path.exists(config_path):
        print(f"❌ 找不到配置文件: {config_path}")
        return 1

    with open(config_path, 'r', encoding='utf-8') as f:
        config = json.load(f)

    base_dir = os.path.dirname(os.path.abspath(config_path))

    print("----------- Acclaim IK Headless -----------")
    print(f"配置加载: {config_path}")

    skeleton_path = resolve_path(config.get('skeleton_path', 'arm.asf'), base_dir)
    motion_path = resolve_path(config.get('motion_path', 'arm.amc'), base_dir)
    targets_path = config.get('targets_path')
    scale = config.get('scale', 0.2)
    frame = config.get('frame', 0)
    start_bone = config.get('start_bone', 1)
    end_bone = config.get('end_bone', -1)

    # 求解参数
    params = {
        'max_iterations': config.get('max_iterations', 1000),
        'epsilon': config.get('epsilon', 1e-3),
        'step': config.get('step', 0.1),
        'singularity_kick': config.get('singularity_kick', 5.0)
    }

    # 2. 加载骨骼与动作
    print(f"正在加载骨骼: {skeleton_path} ...")
    try:
        skeleton = load_skeleton(skeleton_path, scale)
        motion = load_motion(motion_path, skeleton)
    except LoadError as e:
        print(f"❌ 加载失败: {e}")
        return 1
    print(f"骨骼 {skeleton.get_bone_num()} 根（可动 {skeleton.get_movable_bone_num()} 根），"
          f"动作 {motion.get_frame_num()} 帧")

    # 3. 确定IK链两端
    if end_bone == -1:
        end_bone = skeleton.get_bone_num() - 1
    try:
        start = skeleton.bone(start_bone)
        end = skeleton.bone(end_bone)
        motion.set_current_frame(frame)
    except (KeyError, IndexError, TypeError) as e:
        print(f"❌ 参数错误: {e}")
        return 1
    print(f"IK链: {start.name} -> {end.name}")

    # 4. 目标轨迹：targets_path 优先，否则使用单个 target
    if targets_path is not None:
        keyframes = load_targets(resolve_path(targets_path, base_dir))
    else:
        keyframes = [{'frame': 0, 'pos': np.array(config.get('target', [0.0, 0.0, 0.0]), dtype=np.float64)}]
    total_frames = keyframes[-1]['frame']
    print(f"目标轨迹: {len(keyframes)} 个关键帧，总长 {total_frames} 帧")

    # 5. 逐帧求解
    start_time = time.time()
    target = keyframes[-1]['pos']
    unstable_ticks = 0
    try:
        for tick in range(total_frames + 1):
            target = interpolate_targets(keyframes, tick)
            stable = motion.inverse_kinematics(target, start.idx, end.idx, **params)
            if not stable:
                unstable_ticks += 1
            sys.stdout.write(f"\r帧 {tick}/{total_frames}: {'Stable' if stable else 'Unstable'}")
            sys.stdout.flush()
    except ValueError as e:
        print(f"\n❌ IK链构建失败: {e}")
        return 1
    print()

    duration = time.time() - start_time
    print(f"求解完成，耗时: {duration:.2f} 秒，不稳定帧数: {unstable_ticks}")

    # 6. 输出末端位置
    motion.forward_kinematics()
    end_pos = end.end_position
    print(f"末端 {end.name}: [{end_pos[0]:.4f}, {end_pos[1]:.4f}, {end_pos[2]:.4f}]")
    print(f"目标: [{target[0]:.4f}, {target[1]:.4f}, {target[2]:.4f}]")
    print("✅ 任务完成！" if unstable_ticks == 0 else "⚠️ 存在未收敛的帧")
    return 0


def main():
    logging.basicConfig(level=logging.INFO, format="%(asctime)s  %(levelname)-8s  %(message)s", datefmt="%H:%M:%S")
    sys.exit(run_solver(sys.argv[1] if len(sys.argv) > 1 else None))


if __name__ == "__main__":
    main()
