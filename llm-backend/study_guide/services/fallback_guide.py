"""Deterministic local study guide, used as the safety net and as the merge base."""
from typing import List, Sequence

from shared.utils.constants import SOURCES_USED_LIMIT, UPLOADED_MATERIAL_LIMIT, WEAK_TOPIC_LIMIT, WEAK_TOPIC_RATIO
from study_guide.models.guide import (
    BADGE_CONFIRMED,
    BADGE_LIKELY,
    BADGE_MAY_NOT,
    AssessmentMeta,
    Checklist,
    ChecklistItem,
    CourseMeta,
    CourseRef,
    DiagnosticQuestion,
    DiagnosticSection,
    FileRef,
    FinalReviewSection,
    GeneratedGuideDocument,
    GuideMeta,
    HandoffAssessment,
    HandoffContext,
    HandoffMaterials,
    MasteryCheck,
    MemoryAndSpeedSection,
    MemoryItem,
    MinuteDrill,
    ModuleItemRef,
    MustKnowItem,
    MustKnowMapSection,
    PracticeBlueprint,
    PracticeProblem,
    PracticeSet,
    PracticeSetsSection,
    QuickAction,
    ScopeLock,
    SourcesUsed,
    StudyGuideBody,
    StudyOverview,
    TimedItem,
    Topic,
    TopicBadge,
    TutorHandoff,
    UIHints,
)
from study_guide.models.schemas import StudyGuideRequest

QUICK_ACTIONS = [
    QuickAction(
        id="practice",
        label="Practice",
        prefill_user_message_template="Give me quiz-style practice on {selected_topics} with answers and brief feedback.",
    ),
    QuickAction(
        id="explain",
        label="Explain",
        prefill_user_message_template=(
            "Explain {selected_topics} step-by-step with one worked example and one check-for-understanding."
        ),
    ),
    QuickAction(
        id="memorize",
        label="Memorize",
        prefill_user_message_template="Give me memory tips for {selected_topics} plus a short recall drill.",
    ),
]


def weak_topics(request: StudyGuideRequest) -> List[str]:
    """Selected assignments scored below 80%, as concept labels."""
    weak = []
    for assignment in request.selected_assignments:
        if assignment.submission_score is None or assignment.points_possible is None:
            continue
        if assignment.submission_score / (assignment.points_possible or 1) < WEAK_TOPIC_RATIO:
            weak.append(assignment.concept_hint or assignment.name)
    return weak[:WEAK_TOPIC_LIMIT]


def scope_confidence(topics: Sequence[Topic]) -> int:
    badges = {topic.badge for topic in topics}
    if BADGE_CONFIRMED in badges:
        return 80
    if BADGE_LIKELY in badges:
        return 68
    return 55


def _labels_with(topics: Sequence[Topic], badge: str) -> str:
    return ", ".join(topic.topic for topic in topics if topic.badge == badge) or "None"


def _must_know(topics: Sequence[Topic]) -> MustKnowMapSection:
    return MustKnowMapSection(
        title="What to Know (Mapped to Your Quiz)",
        items=[
            MustKnowItem(
                topic=t.topic,
                badge=t.badge,
                key_ideas=[f"Core rule for {t.topic}", f"When to apply {t.topic}"],
                can_you_do=[f"Solve one standard {t.topic} item", "Explain why your method is valid"],
                common_mistake=f"Choosing the wrong approach for {t.topic}.",
                fix="Identify question type first, then apply one method step-by-step.",
            )
            for t in topics[:5]
        ],
    )


def _diagnostic(topics: Sequence[Topic]) -> DiagnosticSection:
    questions = []
    for index, t in enumerate(topics[:4]):
        free_response = index % 2 == 0
        questions.append(DiagnosticQuestion(
            q=f"{t.topic}: solve one representative quiz-style problem and justify each step.",
            topic=t.topic,
            badge=t.badge,
            type="free_response" if free_response else "mcq",
            choices=(
                ["A N/A", "B N/A", "C N/A", "D N/A"] if free_response
                else ["A Option 1", "B Option 2", "C Option 3", "D Option 4"]
            ),
            answer="See worked steps" if free_response else "A",
            solution_steps=["Identify what is being asked", "Set up the method", "Solve and verify result"],
            if_wrong_then="Go to practice_sets and redo the matching topic set.",
        ))
    return DiagnosticSection(
        title="Diagnostic (8 minutes)",
        instructions="Use mixed items; if format is unknown, prioritize free response with one MCQ check.",
        questions=questions,
        routing_rule="If you miss 2+ questions in a topic, start with that topic's practice set before mixed review.",
    )


def _practice_sets(topics: Sequence[Topic]) -> PracticeSetsSection:
    return PracticeSetsSection(
        title="Practice Sets (with Answers)",
        sets=[
            PracticeSet(
                set_id=f"ps{index + 1}",
                topic=t.topic,
                badge=t.badge,
                skills_tested=[f"Method selection for {t.topic}", "Accurate execution", "Error checking"],
                difficulty_mix="2 easy, 2 medium, 1 hard",
                problems=[
                    PracticeProblem(
                        prompt=f"Easy: apply the basic method for {t.topic}.",
                        type="free_response",
                        choices=["A N/A", "B N/A", "C N/A", "D N/A"],
                        answer="Method applied correctly with valid final result.",
                        solution_steps=["Write known information", "Choose method", "Compute and check"],
                        common_trap="Skipping setup and jumping to arithmetic.",
                    ),
                    PracticeProblem(
                        prompt=f"Medium: solve a multi-step {t.topic} problem with one distractor detail.",
                        type="mcq",
                        choices=["A", "B", "C", "D"],
                        answer="B",
                        solution_steps=["Remove irrelevant detail", "Run full solve path", "Check against choices"],
                        common_trap="Using all numbers even when some are irrelevant.",
                    ),
                ],
                mastery_check=MasteryCheck(
                    pass_rule="At least 4/5 correct and no repeated trap type.",
                    if_fail_do_this="Redo the set with written steps, then complete one additional mixed problem.",
                ),
            )
            for index, t in enumerate(topics[:4])
        ],
    )


def _memory_and_speed(topics: Sequence[Topic]) -> MemoryAndSpeedSection:
    return MemoryAndSpeedSection(
        title="Memory + Speed Tricks (Only What You Need)",
        items=[
            MemoryItem(
                topic=t.topic,
                badge=t.badge,
                memory_hook=f"Use a trigger phrase for {t.topic}: 'Identify, Set up, Solve, Check'.",
                speed_tip="Spend first 15 seconds identifying method before calculating.",
                one_min_drill=MinuteDrill(
                    prompt=f"State the method and first step for a {t.topic} question in under 60 seconds.",
                    answer="Method named correctly and first setup step written accurately.",
                ),
            )
            for t in topics[:3]
        ],
    )


def _final_review(topics: Sequence[Topic]) -> FinalReviewSection:
    return FinalReviewSection(
        title="10-Minute Final Review (Simulated)",
        timed_set=[
            TimedItem(
                prompt=f"Timed: solve one mixed {t.topic} item quickly and show checks.",
                answer="Correct final result with method justification.",
                solution_steps=["Method label", "Key steps", "Final check"],
                topic=t.topic,
                badge=t.badge,
            )
            for t in topics[:3]
        ],
        scoring="Score 1 per correct item. If below 80%, redo weakest topic set and repeat one timed item.",
    )


def build_fallback_guide(request: StudyGuideRequest, topics: Sequence[Topic]) -> GeneratedGuideDocument:
    """
    Assemble the full canonical document from local data only.

    Args:
        request: The guide request (selections, materials, prompt)
        topics: Output of the topic scope builder, at least one entry

    Returns:
        A complete GeneratedGuideDocument
    """
    topics = list(topics)
    course = request.selected_course
    course_id = str(course.id) if course and course.id is not None else None
    course_name = course.name if course else None
    assignment_names = [assignment.name for assignment in request.selected_assignments]
    weak = weak_topics(request)
    main_topic = topics[0].topic if topics else "Current course topic"
    assessment_title = request.prompt or "Upcoming assessment"

    assumptions = []
    if not request.selected_assignments:
        assumptions.append("No graded assignment evidence provided, so topic breadth was inferred.")
    if not request.selected_units:
        assumptions.append("No unit metadata supplied; used course-level curriculum patterns.")

    brief = "\n".join([
        f"- Assessment: {assessment_title}",
        f"- Confirmed topics: {_labels_with(topics, BADGE_CONFIRMED)}",
        f"- Likely topics: {_labels_with(topics, BADGE_LIKELY)}",
        f"- May not be on test: {_labels_with(topics, BADGE_MAY_NOT)}",
        f"- Weak areas: {', '.join(weak) or 'No strong weakness signal'}",
    ])

    chips = [topic.topic for topic in topics]

    return GeneratedGuideDocument(
        meta=GuideMeta(
            course=CourseMeta(id=course_id, name=course_name),
            assessment=AssessmentMeta(title=assessment_title),
            scope_confidence=scope_confidence(topics),
            assumptions=assumptions,
            sources_used=SourcesUsed(
                modules=request.selected_units[:SOURCES_USED_LIMIT],
                assignments=assignment_names[:SOURCES_USED_LIMIT],
                files=[material.title for material in request.uploaded_materials][:SOURCES_USED_LIMIT],
                grade_signals_used=bool(weak),
            ),
        ),
        scope_lock=ScopeLock(topics=topics),
        study_guide=StudyGuideBody(
            overview=StudyOverview(
                test_ready_definition=(
                    f"You can solve {main_topic} problems accurately, explain each step, "
                    "and avoid repeated mistake patterns under time pressure."
                ),
                estimated_total_minutes=75,
                if_you_have_20_min=[
                    "Run diagnostic Q1-Q2",
                    f"Review one {main_topic} mistake type",
                    "Do one timed correction",
                ],
                if_you_have_45_min=[
                    "Complete full diagnostic",
                    "Do one practice set with solution check",
                    "Fix one repeated trap",
                ],
                if_you_have_75_min=[
                    "Diagnostic + two practice sets",
                    "Complete memory/speed drill",
                    "Run final 10-minute simulation",
                ],
            ),
            sections=[
                _must_know(topics),
                _diagnostic(topics),
                _practice_sets(topics),
                _memory_and_speed(topics),
                _final_review(topics),
            ],
        ),
        checklist=Checklist(items=[
            ChecklistItem(
                id=f"c{index + 1}",
                task=f"Complete one full {t.topic} set and explain one mistake you corrected.",
                badge=t.badge,
                done_when="You score at least 4/5 on that set and can verbalize the corrected error pattern.",
                linked_section_id=f"ps{min(index + 1, 4)}",
            )
            for index, t in enumerate(topics[:5])
        ]),
        tutor_handoff=TutorHandoff(
            button_label="Open Tutor with this guide",
            brief=brief,
            context=HandoffContext(
                course=CourseRef(id=course_id, name=course_name),
                assessment=HandoffAssessment(title=request.prompt or None),
                topics=[TopicBadge(topic=t.topic, badge=t.badge) for t in topics],
                practice_blueprints=[
                    PracticeBlueprint(
                        topic=t.topic,
                        badge=t.badge,
                        difficulty_mix="2 easy, 2 medium, 1 hard",
                        common_traps=["Wrong method selection", "Skipping step checks"],
                        preferred_question_types=["free_response", "mcq"],
                    )
                    for t in topics[:4]
                ],
                materials=HandoffMaterials(
                    module_items=[ModuleItemRef(title=unit) for unit in request.selected_units],
                    files=[
                        FileRef(title=material.title, id=str(index + 1))
                        for index, material in enumerate(request.uploaded_materials[:UPLOADED_MATERIAL_LIMIT])
                    ],
                ),
            ),
            suggested_quick_actions=[action.model_copy() for action in QUICK_ACTIONS],
        ),
        ui_hints=UIHints(
            topic_chips=chips,
            default_selected_topics=chips[:3],
            recommended_time_buttons=[20, 45, 75],
        ),
    )
