"""Tests for ASF / AMC / target loading."""

import logging
import numpy as np
import pytest

from acclaim_ik import LoadError, load_skeleton, load_motion, load_targets, interpolate_targets
from acclaim_ik.utils import rotate_degree_zyx
from tests.conftest import CHAIN_ASF


ARM_BONE_NAMES = [
    'root', 'lowerback', 'upperback', 'thorax',
    'lclavicle', 'lhumerus', 'lradius', 'lhand',
    'rclavicle', 'rhumerus', 'rradius', 'rhand',
]


def minimal_asf(bonedata, hierarchy):
    return (":version 1.10\n:name test\n:bonedata\n" + bonedata
            + ":hierarchy\n  begin\n" + hierarchy + "  end\n")


BONE_A = """\
  begin
     id 1
     name a
     direction 0 1 0
     length 2
     axis 0 0 0 XYZ
     dof rx ry rz
  end
"""


class TestLoadSkeleton:

    def test_bone_names_round_trip(self, arm_skeleton):
        names = [arm_skeleton.bone(i).name for i in range(arm_skeleton.get_bone_num())]
        assert names == ARM_BONE_NAMES
        assert arm_skeleton.bone(0).name == 'root'
        assert arm_skeleton.bone(0).parent is None

    def test_lookup_by_name_and_index(self, arm_skeleton):
        assert arm_skeleton.bone('lhumerus') is arm_skeleton.bone(5)
        assert arm_skeleton.bone(5).idx == 5
        with pytest.raises(KeyError):
            arm_skeleton.bone('tail')
        with pytest.raises(IndexError):
            arm_skeleton.bone(99)

    def test_scale_multiplies_length(self, arm_skeleton):
        assert arm_skeleton.get_scale() == pytest.approx(0.2)
        assert arm_skeleton.bone('lhumerus').length == pytest.approx(1.0)
        assert arm_skeleton.bone('lhand').length == pytest.approx(0.3)
        assert arm_skeleton.root.length == 0.0

    def test_hierarchy_links(self, arm_skeleton):
        thorax = arm_skeleton.bone('thorax')
        lclavicle = arm_skeleton.bone('lclavicle')
        rclavicle = arm_skeleton.bone('rclavicle')

        assert thorax.children == [lclavicle.idx, rclavicle.idx]
        assert thorax.child == lclavicle.idx
        assert lclavicle.parent == thorax.idx
        assert arm_skeleton.sibling(lclavicle.idx) == rclavicle.idx
        assert arm_skeleton.sibling(rclavicle.idx) is None
        assert arm_skeleton.root.children == [arm_skeleton.bone('lowerback').idx]

    def test_dof_flags(self, arm_skeleton):
        lradius = arm_skeleton.bone('lradius')
        assert lradius.rotation_dofs == (True, False, False)
        assert lradius.dof == 1
        assert lradius.dof_order == ['rx']

        lclavicle = arm_skeleton.bone('lclavicle')
        assert lclavicle.rotation_dofs == (False, True, True)
        assert lclavicle.dof_order == ['ry', 'rz']

        root = arm_skeleton.root
        assert root.dof == 6
        assert root.dof_order == ['tx', 'ty', 'tz', 'rx', 'ry', 'rz']

    def test_movable_bone_count(self, arm_skeleton):
        # root + 11 bones with a dof line
        assert arm_skeleton.get_movable_bone_num() == 12

    def test_limits_are_recorded(self, arm_skeleton):
        assert arm_skeleton.bone('lhumerus').limits == [(-60.0, 90.0), (-90.0, 90.0), (-90.0, 90.0)]
        assert arm_skeleton.bone('lradius').limits == [(-10.0, 170.0)]

    def test_direction_converted_to_local_frame(self, arm_skeleton):
        # axis (0, 0, -90): global +X becomes local +Y
        lhumerus = arm_skeleton.bone('lhumerus')
        np.testing.assert_allclose(lhumerus.dir, [0.0, 1.0, 0.0], atol=1e-12)

    def test_local_rotation(self, arm_skeleton):
        lhumerus = arm_skeleton.bone('lhumerus')
        lradius = arm_skeleton.bone('lradius')
        # lclavicle axis z=-20, lhumerus axis z=-90
        np.testing.assert_allclose(lhumerus.rot_parent_current, rotate_degree_zyx([0, 0, -70]), atol=1e-12)
        # same axis as parent
        np.testing.assert_allclose(lradius.rot_parent_current, np.identity(3), atol=1e-12)
        np.testing.assert_allclose(arm_skeleton.root.rot_parent_current, np.identity(3), atol=1e-12)

    def test_global_facing_maps_unit_z_to_bone(self, arm_skeleton):
        for bone in arm_skeleton.bones[1:]:
            tip = bone.global_facing @ np.array([0.0, 0.0, 1.0, 1.0])
            unit_dir = bone.dir / np.linalg.norm(bone.dir)
            np.testing.assert_allclose(tip[:3], unit_dir * bone.length, atol=1e-9)

    def test_missing_file(self, tmp_path):
        with pytest.raises(LoadError):
            load_skeleton(tmp_path / 'missing.asf', 0.2)

    def test_missing_bonedata(self, write_file):
        path = write_file('bad.asf', ":version 1.10\n:name nothing\n")
        with pytest.raises(LoadError, match='bonedata'):
            load_skeleton(path)

    def test_missing_hierarchy(self, write_file):
        path = write_file('bad.asf', ":version 1.10\n:bonedata\n" + BONE_A)
        with pytest.raises(LoadError, match='hierarchy'):
            load_skeleton(path)

    def test_malformed_number(self, write_file):
        bonedata = BONE_A.replace('length 2', 'length two')
        path = write_file('bad.asf', minimal_asf(bonedata, "    root a\n"))
        with pytest.raises(LoadError) as excinfo:
            load_skeleton(path)
        assert excinfo.value.line_no is not None

    def test_missing_end(self, write_file):
        path = write_file('bad.asf', ":bonedata\n  begin\n     id 1\n     name a\n")
        with pytest.raises(LoadError):
            load_skeleton(path)

    def test_undefined_hierarchy_bone(self, write_file):
        path = write_file('bad.asf', minimal_asf(BONE_A, "    root a\n    a ghost\n"))
        with pytest.raises(LoadError, match='ghost'):
            load_skeleton(path)

    def test_orphan_bone(self, write_file):
        bone_b = BONE_A.replace('id 1', 'id 2').replace('name a', 'name b')
        path = write_file('bad.asf', minimal_asf(BONE_A + bone_b, "    root a\n"))
        with pytest.raises(LoadError, match='b'):
            load_skeleton(path)

    def test_child_with_two_parents(self, write_file):
        bone_b = BONE_A.replace('id 1', 'id 2').replace('name a', 'name b')
        path = write_file('bad.asf', minimal_asf(BONE_A + bone_b, "    root a b\n    a b\n"))
        with pytest.raises(LoadError):
            load_skeleton(path)

    def test_non_continuous_ids(self, write_file):
        bonedata = BONE_A.replace('id 1', 'id 3')
        path = write_file('bad.asf', minimal_asf(bonedata, "    root a\n"))
        with pytest.raises(LoadError, match='id'):
            load_skeleton(path)

    def test_unknown_dof_token_is_warning(self, write_file, caplog):
        bonedata = BONE_A.replace('dof rx ry rz', 'dof rx ry wobble')
        path = write_file('warn.asf', minimal_asf(bonedata, "    root a\n"))

        with caplog.at_level(logging.WARNING, logger='acclaim_ik.data_io'):
            skeleton = load_skeleton(path, 1.0)

        assert 'wobble' in caplog.text
        bone = skeleton.bone('a')
        assert bone.rotation_dofs == (True, True, False)
        assert bone.dof == 2

    def test_unknown_record_key_is_warning(self, write_file, caplog):
        bonedata = BONE_A.replace('  end\n', '     bodymass 3.5\n  end\n')
        path = write_file('warn.asf', minimal_asf(bonedata, "    root a\n"))

        with caplog.at_level(logging.WARNING, logger='acclaim_ik.data_io'):
            skeleton = load_skeleton(path, 1.0)

        assert 'bodymass' in caplog.text
        assert skeleton.bone('a').length == pytest.approx(2.0)

    def test_root_order_from_header(self, write_file):
        text = CHAIN_ASF.replace('order TX TY TZ RX RY RZ', 'order RX RY RZ TX TY TZ')
        skeleton = load_skeleton(write_file('chain.asf', text), 1.0)
        assert skeleton.root.dof_order == ['rx', 'ry', 'rz', 'tx', 'ty', 'tz']


class TestLoadMotion:

    def test_frames(self, arm_motion):
        assert arm_motion.get_frame_num() == 2
        assert arm_motion.current_frame == 0

    def test_root_translation_is_scaled(self, arm_motion):
        np.testing.assert_allclose(arm_motion.postures[0].root_translation, [0.0, 2.0, 0.0])

    def test_values_follow_dof_order(self, arm_motion, arm_skeleton):
        frame = arm_motion.postures[1]
        np.testing.assert_allclose(frame.bone_rotations[arm_skeleton.bone('lradius').idx], [20.0, 0.0, 0.0])
        # lclavicle: dof ry rz
        np.testing.assert_allclose(frame.bone_rotations[arm_skeleton.bone('lclavicle').idx], [0.0, 0.0, -5.0])
        np.testing.assert_allclose(frame.bone_rotations[arm_skeleton.root.idx], [0.0, 5.0, 0.0])

    def test_missing_file(self, chain_skeleton, tmp_path):
        with pytest.raises(LoadError):
            load_motion(tmp_path / 'missing.amc', chain_skeleton)

    def test_too_few_values(self, chain_skeleton, write_file):
        path = write_file('bad.amc', ":DEGREES\n1\nroot 0 0 0 0 0 0\nb1 10 20\n")
        with pytest.raises(LoadError, match='b1'):
            load_motion(path, chain_skeleton)

    def test_data_before_frame_number(self, chain_skeleton, write_file):
        path = write_file('bad.amc', ":DEGREES\nroot 0 0 0 0 0 0\n")
        with pytest.raises(LoadError):
            load_motion(path, chain_skeleton)

    def test_no_frames(self, chain_skeleton, write_file):
        path = write_file('empty.amc', "# nothing here\n:FULLY-SPECIFIED\n:DEGREES\n")
        with pytest.raises(LoadError, match='no frames'):
            load_motion(path, chain_skeleton)

    def test_non_numeric_value(self, chain_skeleton, write_file):
        path = write_file('bad.amc', "1\nb1 10 x 0\n")
        with pytest.raises(LoadError):
            load_motion(path, chain_skeleton)

    def test_unknown_bone_is_skipped(self, chain_skeleton, write_file, caplog):
        path = write_file('warn.amc', "1\nroot 1 2 3 0 0 0\ntail 5\nb2 0 0 45\n")

        with caplog.at_level(logging.WARNING, logger='acclaim_ik.data_io'):
            motion = load_motion(path, chain_skeleton)

        assert 'tail' in caplog.text
        np.testing.assert_allclose(motion.postures[0].root_translation, [1.0, 2.0, 3.0])
        np.testing.assert_allclose(motion.postures[0].bone_rotations[2], [0.0, 0.0, 45.0])


class TestTargets:

    @pytest.fixture
    def keyframes(self, write_file):
        path = write_file('targets.json', """
            [
              {"frame": 10, "pos": [2.0, 0.0, 0.0]},
              {"frame": 0, "pos": [0.0, 0.0, 0.0]},
              {"frame": 20, "pos": [2.0, 4.0, 0.0]}
            ]
        """)
        return load_targets(path)

    def test_sorted_by_frame(self, keyframes):
        assert [kf['frame'] for kf in keyframes] == [0, 10, 20]

    def test_linear_interpolation(self, keyframes):
        np.testing.assert_allclose(interpolate_targets(keyframes, 5), [1.0, 0.0, 0.0])
        np.testing.assert_allclose(interpolate_targets(keyframes, 15), [2.0, 2.0, 0.0])

    def test_clamped_outside_range(self, keyframes):
        np.testing.assert_allclose(interpolate_targets(keyframes, -3), [0.0, 0.0, 0.0])
        np.testing.assert_allclose(interpolate_targets(keyframes, 99), [2.0, 4.0, 0.0])
