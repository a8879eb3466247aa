from dataclasses import dataclass
from typing import Callable, Dict, Iterable, Optional, Sequence, Tuple

from .geometry import MIN_KEYPOINT_SCORE, angle_between, distance, resolve_joint, safe_ratio
from .types import Exercise, FormResult, Keypoint

Joints = Dict[str, Optional[Keypoint]]

# A secondary check: returns an override message when it triggers, else None
FormRule = Callable[[Joints, Dict[str, float]], Optional[str]]


@dataclass(frozen=True)
class DepthBand:
    """One entry of an ordered depth/phase grading table."""
    threshold: float
    above: bool  # True: matches angle > threshold, False: angle < threshold
    feedback: str
    is_valid: bool

    def matches(self, angle: float) -> bool:
        return angle > self.threshold if self.above else angle < self.threshold


class ExerciseClassifier:
    """
    Base class for per-exercise form classifiers.

    A classifier is a pure function of one frame:
    1. Resolve joints (left side preferred, right as fallback)
    2. Return the neutral result if a mandatory joint is missing
    3. Measure named angles
    4. Grade the primary angle through ordered depth bands
    5. Fold the secondary rules in order; every rule that triggers
       overwrites the feedback and invalidates the rep, so the last
       triggered rule decides the final message

    Subclasses only declare tables and angle measurements.
    """

    exercise: Exercise
    mandatory_joints: Tuple[str, ...] = ()
    optional_joints: Tuple[str, ...] = ()
    primary_angle: str = ""
    depth_bands: Tuple[DepthBand, ...] = ()
    default_feedback: str = ""
    default_valid: bool = True
    rules: Tuple[FormRule, ...] = ()

    def __init__(self, min_score: float = MIN_KEYPOINT_SCORE):
        self.min_score = min_score

    def resolve_joints(self, frame: Sequence[Optional[Keypoint]]) -> Joints:
        return {
            joint: resolve_joint(frame, joint, self.min_score)
            for joint in self.mandatory_joints + self.optional_joints
        }

    def measure_angles(self, joints: Joints) -> Dict[str, float]:
        raise NotImplementedError

    def grade(self, angle: float) -> Tuple[str, bool]:
        for band in self.depth_bands:
            if band.matches(angle):
                return band.feedback, band.is_valid
        return self.default_feedback, self.default_valid

    def classify(self, frame: Sequence[Optional[Keypoint]]) -> FormResult:
        """
        Classify the form shown in a single frame.

        Args:
            frame: Keypoints of one frame

        Returns:
            FormResult with feedback, validity and the measured angles
        """
        joints = self.resolve_joints(frame)
        if any(joints[name] is None for name in self.mandatory_joints):
            return FormResult.neutral()

        angles = self.measure_angles(joints)
        feedback, is_valid = self.grade(angles[self.primary_angle])

        for rule in self.rules:
            message = rule(joints, angles)
            if message:
                feedback = message
                is_valid = False

        return FormResult(feedback=feedback, is_valid=is_valid, angles=angles)


def _leg_angles(joints: Joints) -> Dict[str, float]:
    angles = {'knee_angle': angle_between(joints['hip'], joints['knee'], joints['ankle'])}
    if joints.get('shoulder') is not None:
        angles['hip_angle'] = angle_between(joints['shoulder'], joints['hip'], joints['knee'])
    return angles


def _knee_over_ankle_ratio(joints: Joints) -> float:
    return safe_ratio(abs(joints['knee'].x - joints['ankle'].x),
                      distance(joints['hip'], joints['knee']))


# Squat rules

def _squat_back_alignment(joints: Joints, angles: Dict[str, float]) -> Optional[str]:
    if 'hip_angle' in angles and angles['hip_angle'] < 150:
        return "Keep your back straight and chest up"
    return None


def _squat_knee_alignment(joints: Joints, angles: Dict[str, float]) -> Optional[str]:
    if _knee_over_ankle_ratio(joints) > 0.3:
        return "Keep your knees aligned with your toes, don't let them cave in"
    return None


class SquatClassifier(ExerciseClassifier):
    exercise = Exercise.SQUAT
    mandatory_joints = ('hip', 'knee', 'ankle')
    optional_joints = ('shoulder',)
    primary_angle = 'knee_angle'
    depth_bands = (
        DepthBand(160, True, "Bend your knees more to go deeper into the squat", False),
        DepthBand(70, False, "Great depth! Keep your knees aligned with your toes", True),
        DepthBand(100, False, "Good form! You're getting deep into the squat", True),
    )
    default_feedback = "You're doing great! Keep it up!"
    default_valid = True
    rules = (_squat_back_alignment, _squat_knee_alignment)

    def measure_angles(self, joints: Joints) -> Dict[str, float]:
        return _leg_angles(joints)


# Push-up rules

def _pushup_body_line(joints: Joints, angles: Dict[str, float]) -> Optional[str]:
    if 'body_angle' in angles and angles['body_angle'] < 160:
        return "Keep your body in a straight line from head to toe"
    return None


def _pushup_hand_placement(joints: Joints, angles: Dict[str, float]) -> Optional[str]:
    if joints['wrist'].x < joints['shoulder'].x - 50:
        return "Keep your hands directly under your shoulders"
    return None


def _pushup_elbow_flare(joints: Joints, angles: Dict[str, float]) -> Optional[str]:
    shoulder, elbow = joints['shoulder'], joints['elbow']
    flare_ratio = safe_ratio(abs(elbow.x - shoulder.x), abs(elbow.y - shoulder.y))
    if flare_ratio > 1.5:
        return "Keep your elbows closer to your body, not flared out"
    return None


class PushUpClassifier(ExerciseClassifier):
    exercise = Exercise.PUSH_UP
    mandatory_joints = ('shoulder', 'elbow', 'wrist')
    optional_joints = ('hip', 'ankle')
    primary_angle = 'elbow_angle'
    # ~180 with straight arms at the top, ~90 at the bottom
    depth_bands = (
        DepthBand(170, True, "Lower your body more to get full range of motion", False),
        DepthBand(80, False, "Excellent depth! You're going all the way down", True),
        DepthBand(100, False, "Good depth! Keep your body straight", True),
        DepthBand(140, False, "You're doing great! Try to go a bit deeper", True),
    )
    default_feedback = "Lower your body more for a complete push-up"
    default_valid = False
    rules = (_pushup_body_line, _pushup_hand_placement, _pushup_elbow_flare)

    def measure_angles(self, joints: Joints) -> Dict[str, float]:
        angles = {'elbow_angle': angle_between(joints['shoulder'], joints['elbow'], joints['wrist'])}
        if joints['hip'] is not None and joints['ankle'] is not None:
            angles['body_angle'] = angle_between(joints['shoulder'], joints['hip'], joints['ankle'])
        return angles


# Wall sit rules

def _wall_sit_back_flat(joints: Joints, angles: Dict[str, float]) -> Optional[str]:
    if 'hip_angle' in angles and not 70 <= angles['hip_angle'] <= 120:
        return "Keep your back flat against the wall"
    return None


def _wall_sit_knee_stack(joints: Joints, angles: Dict[str, float]) -> Optional[str]:
    if _knee_over_ankle_ratio(joints) > 0.3:
        return "Keep your knees stacked directly above your ankles"
    return None


class WallSitClassifier(ExerciseClassifier):
    exercise = Exercise.WALL_SIT
    mandatory_joints = ('hip', 'knee', 'ankle')
    optional_joints = ('shoulder',)
    primary_angle = 'knee_angle'
    depth_bands = (
        DepthBand(120, True, "Slide down the wall until your thighs are parallel to the floor", False),
        DepthBand(70, False, "Raise your hips a little, your knees are bent past 90 degrees", False),
        DepthBand(100, False, "Perfect wall sit! Hold this position", True),
    )
    default_feedback = "Almost there, slide a little lower"
    default_valid = True
    rules = (_wall_sit_back_flat, _wall_sit_knee_stack)

    def measure_angles(self, joints: Joints) -> Dict[str, float]:
        return _leg_angles(joints)


# Romanian deadlift rules

def _rdl_soft_knees(joints: Joints, angles: Dict[str, float]) -> Optional[str]:
    if 'knee_angle' in angles and angles['knee_angle'] < 140:
        return "Keep only a soft bend in your knees, don't squat the weight"
    return None


def _rdl_bar_path(joints: Joints, angles: Dict[str, float]) -> Optional[str]:
    wrist = joints['wrist']
    if wrist is None:
        return None
    drift = safe_ratio(abs(wrist.x - joints['knee'].x), distance(joints['hip'], joints['knee']))
    if drift > 0.5:
        return "Keep the bar close to your legs"
    return None


class RomanianDeadliftClassifier(ExerciseClassifier):
    exercise = Exercise.BARBELL_RDL
    mandatory_joints = ('shoulder', 'hip', 'knee')
    optional_joints = ('ankle', 'wrist')
    primary_angle = 'hip_angle'
    depth_bands = (
        DepthBand(160, True, "Hinge at your hips and push them back", False),
        DepthBand(60, False, "Great hinge depth! Drive your hips forward to stand up", True),
        DepthBand(100, False, "Good hinge! Keep the bar close to your legs", True),
    )
    default_feedback = "Keep hinging, push your hips back further"
    default_valid = True
    rules = (_rdl_soft_knees, _rdl_bar_path)

    def measure_angles(self, joints: Joints) -> Dict[str, float]:
        angles = {'hip_angle': angle_between(joints['shoulder'], joints['hip'], joints['knee'])}
        if joints['ankle'] is not None:
            angles['knee_angle'] = angle_between(joints['hip'], joints['knee'], joints['ankle'])
        return angles


CLASSIFIERS: Dict[Exercise, ExerciseClassifier] = {
    Exercise.SQUAT: SquatClassifier(),
    Exercise.PUSH_UP: PushUpClassifier(),
    Exercise.WALL_SIT: WallSitClassifier(),
    Exercise.BARBELL_RDL: RomanianDeadliftClassifier(),
}


def get_classifier(exercise, min_score: float = MIN_KEYPOINT_SCORE) -> Optional[ExerciseClassifier]:
    """Return the classifier for an exercise name or enum, or None if unknown."""
    parsed = Exercise.parse(exercise)
    if parsed is None:
        return None
    if min_score == MIN_KEYPOINT_SCORE:
        return CLASSIFIERS[parsed]
    return type(CLASSIFIERS[parsed])(min_score)


def classify_form(exercise, frame: Optional[Iterable[Optional[Keypoint]]],
                  min_score: float = MIN_KEYPOINT_SCORE) -> FormResult:
    """
    Classify a frame for the selected exercise.

    Absent or unknown exercises and empty frames give the neutral result.
    """
    classifier = get_classifier(exercise, min_score)
    if classifier is None or not frame:
        return FormResult.neutral()
    return classifier.classify(list(frame))
