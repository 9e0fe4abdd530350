import textwrap
import pytest

from acclaim_ik import load_skeleton, load_motion, Posture
from acclaim_ik.utils import get_data_path


CHAIN_ASF = """\
:version 1.10
:name chain
:units
  angle deg
:root
   order TX TY TZ RX RY RZ
   axis XYZ
   position 0 0 0
   orientation 0 0 0
:bonedata
  begin
     id 1
     name b1
     direction 0 0 1
     length 1
     axis 0 0 0 XYZ
     dof rx ry rz
  end
  begin
     id 2
     name b2
     direction 0 0 1
     length 1
     axis 0 0 0 XYZ
     dof rx ry rz
  end
  begin
     id 3
     name b3
     direction 0 0 1
     length 1
     axis 0 0 0 XYZ
     dof rx ry rz
  end
:hierarchy
  begin
    root b1
    b1 b2
    b2 b3
  end
"""


@pytest.fixture
def write_file(tmp_path):
    def _write(name, text):
        path = tmp_path / name
        path.write_text(textwrap.dedent(text), encoding='utf-8')
        return path
    return _write


@pytest.fixture
def chain_skeleton(write_file):
    """三节直链：长度均为1，沿Z轴，全部旋转自由度开启"""
    return load_skeleton(write_file('chain.asf', CHAIN_ASF), 1.0)


@pytest.fixture
def chain_posture(chain_skeleton):
    return Posture(chain_skeleton.get_bone_num())


@pytest.fixture
def arm_skeleton():
    return load_skeleton(get_data_path('arm.asf'), 0.2)


@pytest.fixture
def arm_motion(arm_skeleton):
    return load_motion(get_data_path('arm.amc'), arm_skeleton)
