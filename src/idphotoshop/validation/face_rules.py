from __future__ import annotations

from typing import List

from idphotoshop.core.models import FaceDetectionResult
from idphotoshop.validation.report import RuleResult, ValidationReport

MIN_FACE_CONFIDENCE = 0.70


def check_face_detection(
    result: FaceDetectionResult, min_confidence: float = MIN_FACE_CONFIDENCE
) -> ValidationReport:
    """
    Apply ID-photo business rules to a raw detection result.

    Rules run in a fixed order; callers that need a single reason should use
    ValidationReport.first_failure(). A confidence exactly at the threshold passes.
    """
    results: List[RuleResult] = []

    # Rule: Face present
    results.append(
        RuleResult(
            rule_id="Face present",
            passed=result.has_face,
            message=(
                "Face detected."
                if result.has_face
                else "No face detected. Upload a photo that clearly shows a face."
            ),
            metrics={"has_face": result.has_face},
        )
    )

    # Rule: Face count
    count_ok = result.face_count != 0
    results.append(
        RuleResult(
            rule_id="Face count",
            passed=count_ok,
            message=(
                f"{result.face_count} face(s) found."
                if count_ok
                else "No face detected. Make sure there is a person in the photo."
            ),
            metrics={"face_count": result.face_count},
        )
    )

    # Rule: Single person
    single_ok = result.face_count <= 1
    results.append(
        RuleResult(
            rule_id="Single person",
            passed=single_ok,
            message=(
                "Exactly one person in the photo."
                if single_ok
                else f"Multiple faces detected ({result.face_count}). "
                "The photo must contain exactly one person."
            ),
            metrics={"face_count": result.face_count, "max_faces": 1},
        )
    )

    # Rule: Confidence of the primary face
    face = result.primary_face
    if face is None:
        results.append(
            RuleResult(
                rule_id="Confidence",
                passed=False,
                message="No face to measure detection confidence on.",
                metrics={"confidence": None, "threshold": min_confidence},
            )
        )
    else:
        conf_ok = face.confidence >= min_confidence
        msg = f"Confidence {face.confidence:.2f} (minimum {min_confidence:.2f})."
        if not conf_ok:
            msg = (
                f"Face detection confidence is too low ({face.confidence:.2f}). "
                "Upload a clearer photo."
            )
        results.append(
            RuleResult(
                rule_id="Confidence",
                passed=conf_ok,
                message=msg,
                metrics={"confidence": face.confidence, "threshold": min_confidence},
            )
        )

    passed = all(r.passed for r in results)
    return ValidationReport(passed=passed, results=results)


def format_report_text(report: ValidationReport) -> str:
    lines: List[str] = []
    lines.append("IDPhotoShop Face Check")
    lines.append("-" * 22)
    lines.append(f"Overall: {'PASS' if report.passed else 'FAIL'}")
    lines.append("")
    for r in report.results:
        mark = "✅" if r.passed else "❌"
        lines.append(f"{mark} {r.rule_id}: {r.message}")
    return "\n".join(lines)
