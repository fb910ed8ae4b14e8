"""First-person viewmodel sway, bob and item transition blending."""

from viewmodel_motion.utils import setup_logger
from viewmodel_motion.errors import NotFoundError, InvalidProfileError
from viewmodel_motion.profiles import DEFAULT_PROFILE, Profile, ProfileStore
from viewmodel_motion.controller import ViewmodelController
from viewmodel_motion.frame_clock import ManualFrameClock, ThreadedFrameClock
from viewmodel_motion.integrator import FrameIntegrator
from viewmodel_motion.transitions import TransitionController
from viewmodel_motion.motion_state import InputSample, MotionState, Transform


__all__ = [
    "DEFAULT_PROFILE",
    "FrameIntegrator",
    "InputSample",
    "InvalidProfileError",
    "ManualFrameClock",
    "MotionState",
    "NotFoundError",
    "Profile",
    "ProfileStore",
    "ThreadedFrameClock",
    "Transform",
    "TransitionController",
    "ViewmodelController",
    "setup_logger",
]
