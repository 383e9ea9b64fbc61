"""Default First Health Enrollment coaching rubric.

Seeded by the ``seed default rubric`` migration and by
``app.scripts.seed`` when no rubric has ever been activated.  Edit the
values here, not in the migration.
"""

from typing import Any, Dict, List

DEFAULT_RUBRIC_NAME = "First Health Enrollment Standard Rubric"
DEFAULT_RUBRIC_DESCRIPTION = (
    "Default coaching rubric based on Script 2.0 for First Health Enrollment "
    "sales calls"
)

_CATEGORY_HEADERS = [
    (
        "Opening & Rapport",
        "opening_rapport",
        "First impression, compliance intro, consent. Includes agent identification, recording disclosure, and establishing trust.",
        10.0,
    ),
    (
        "Needs Discovery & Qualification",
        "needs_discovery",
        "Understanding customer needs, determining ACA vs Limited Medical path based on income qualification.",
        30.0,
    ),
    (
        "Product Presentation",
        "product_presentation",
        "Connecting benefits to needs, explaining subsidy, copays, preventative care, dental/vision, and total price.",
        20.0,
    ),
    (
        "Objection Handling",
        "objection_handling",
        "Addressing concerns about price, spouse consultation, timing, and maintaining momentum.",
        20.0,
    ),
    (
        "Compliance & Disclosures",
        "compliance_disclosures",
        "Required statements, recording disclosure, citizenship verification, CareConnect clarification.",
        10.0,
    ),
    (
        "Closing & Enrollment",
        "closing_enrollment",
        "Collecting information, processing enrollment, consent forms, handoff to verification.",
        10.0,
    ),
]

# Score 1..5 descriptions, in the same order as _CATEGORY_HEADERS
_CRITERIA_TEXT = [
    [
        "Missing multiple required elements. No agent name OR no company name OR no recording disclosure. Jumped straight to questions without establishing context. Customer confused about who is calling or why.",
        "Included agent name and company but missed recording disclosure OR consent request. Rushed through introduction. No attempt to build rapport or confirm it is a good time.",
        "All required elements present: name, company, state licensing, reason for call, recording disclosure. Asked for consent. Delivery was adequate but mechanical or rushed.",
        "Strong introduction with all elements. Natural delivery, not robotic. Confirmed customer availability. Brief rapport-building (used customer name, acknowledged their situation). Created positive first impression.",
        "Exceptional opening that immediately built trust. All compliance elements woven in naturally. Personalized the interaction. Set clear expectations for the call. Customer felt welcomed and at ease. Seamlessly transitioned to discovery.",
    ],
    [
        "Skipped discovery entirely or asked fewer than 3 questions. Jumped to pitch without understanding customer situation. Did not verify income. Pitched wrong product for customer income level.",
        "Asked some basic questions (zip, filing status) but missed critical areas like income verification, pre-existing conditions, or medications. Did not reassure customer about pre-existing conditions. May have pitched ACA to someone who did not qualify.",
        "Covered most required questions. Verified income and correctly identified ACA vs Limited Medical path. Asked about pre-existing conditions and medications. May have missed doctor preference question or did not dig deep into customer specific needs. Adequate but surface-level discovery.",
        "Thorough discovery covering all required areas. Used the pre-existing conditions reassurance (you CANNOT be denied coverage). Asked follow-up questions based on customer responses. Correctly identified product path and transitioned smoothly if Limited Medical was needed. Connected discoveries to later presentation.",
        "Exceptional discovery that uncovered not just facts but motivations. Asked all required questions plus insightful follow-ups. Made customer feel heard and understood. Identified specific pain points (medications, doctors, conditions) that were later addressed in presentation. Correctly identified ACA vs Limited Medical and if switching, made the transition feel natural and beneficial, not like a downgrade.",
    ],
    [
        "Generic presentation that did not connect to customer needs. Missed major benefits (no mention of subsidy, or skipped preventative care, or forgot dental/vision). Used confusing jargon. Customer seemed lost or disengaged.",
        "Covered basic elements but presentation felt scripted and impersonal. Mentioned subsidy and some benefits but did not connect them to customer discovered needs (medications, doctors, conditions). Missed dental/vision or accidental death benefits.",
        "Solid presentation covering subsidy, copays, preventative care (with appropriate gender examples), deductible, dental, vision, and accidental death. Explained total price. Delivery was clear but did not personalize much to customer specific situation.",
        "Strong presentation that referenced customer discovered needs. Connected benefits to their specific medications, doctors, or conditions. Explained subsidy clearly. Used momentum technique effectively. Customer understood the value proposition. Asked clarifying questions or got verbal buy-in during presentation.",
        "Exceptional consultative presentation. Wove customer specific pain points throughout (Remember you mentioned X medication? That would be covered with your Y copay). Made complex concepts simple. Built genuine excitement about the coverage. Customer felt this plan was chosen specifically for them, not a one-size-fits-all pitch. Transitioned naturally to close.",
    ],
    [
        "Ignored objections entirely or argued with customer. Gave up immediately at first pushback. Used high-pressure tactics that made customer uncomfortable. Lost the sale due to poor objection handling.",
        "Acknowledged objection but response was generic or weak. Did not uncover the real concern behind the objection. Accepted stalls (I will call you back) without attempting to address or schedule follow-up.",
        "Addressed objections adequately. Acknowledged the concern, provided a reasonable response. Did not fully resolve or lost momentum afterward. May have handled one objection well but struggled with follow-up objections.",
        "Strong objection handling. Used empathy (I understand), asked clarifying questions to uncover real concerns, and provided specific responses that addressed the root issue. Maintained positive rapport throughout. Successfully redirected to value after addressing concern.",
        "Expert-level handling. Anticipated objections before they arose. When objections came, listened fully, validated the concern, asked questions to understand the root cause, and turned the objection into a reason to buy. Customer felt heard and respected, not pressured. Maintained control while making customer feel in control of their decision.",
    ],
    [
        "Multiple critical compliance elements missing. No recording disclosure OR no citizenship verification OR made false promises about coverage. High risk of compliance violation.",
        "Some compliance elements present but significant gaps. May have rushed through disclosures so fast customer could not understand. Did not clearly explain CareConnect is not health insurance. Skipped verbal confirmations.",
        "All critical compliance elements present. Recording disclosure, citizenship verification, CareConnect clarification, verbal confirmations completed. Delivery was adequate but may have felt rushed or like fine print reading.",
        "Thorough compliance with clear explanations. Made disclosures feel like helpful information, not legal requirements. Customer understood what they were agreeing to. Proactively clarified limitations. Explained document expectations and timeline clearly.",
        "Exceptional compliance execution. All required elements delivered naturally within the conversation flow. Built trust through transparency. Customer felt informed and protected, not confused by disclaimers. Clearly explained CareConnect distinction. Thoroughly covered SEP documentation if applicable. Set proper expectations about next steps.",
    ],
    [
        "Call ended without clear outcome. Did not attempt to close. OR collected incomplete information. OR did not transfer to verification. Customer left confused about what happens next.",
        "Attempted close but gave up easily at hesitation. Collected some information but missed key elements. Did not explain consent forms properly. Rushed through next steps so customer did not understand what to expect.",
        "Solid close with all information collected. Consent forms sent and explained adequately. Verbal confirmations completed. Explained next steps including emails to expect and ID card timeline. Transferred to verification. Process felt mechanical but complete.",
        "Strong close with smooth information collection. Made consent forms feel easy, not bureaucratic. Thoroughly explained what emails to expect (especially the THIS IS NOT HEALTH INSURANCE one). Warned about not picking another plan. Mentioned rogue agents. Customer felt confident about next steps. Warm handoff to verification.",
        "Exceptional close that felt like a natural conclusion, not a hard sell. Customer eagerly provided information. Consent form process was seamless with clear explanations. Customer understood exactly what happens next, what emails to expect, what NOT to do, and how to get help if needed. Agent saved their number. Customer felt taken care of, not just processed. Confident, professional transfer to verification.",
    ],
]

DEFAULT_CATEGORIES: List[Dict[str, Any]] = [
    {
        "name": name,
        "slug": slug,
        "description": description,
        "weight": weight,
        "sort_order": position,
        "is_enabled": True,
        "scoring_criteria": [
            {"score": score, "criteria_text": text}
            for score, text in enumerate(_CRITERIA_TEXT[position], start=1)
        ],
    }
    for position, (name, slug, description, weight) in enumerate(_CATEGORY_HEADERS)
]

DEFAULT_RED_FLAGS: List[Dict[str, Any]] = [
    # Critical severity (immediate manager alert)
    {
        "flag_key": "ssn_before_citizenship",
        "display_name": "SSN before citizenship verification",
        "description": "Collected Social Security Number before verifying citizenship/residency status",
        "severity": "critical",
    },
    {
        "flag_key": "missing_recording_disclosure",
        "display_name": "Missing recording disclosure",
        "description": "Recording disclosure was completely absent from the call",
        "severity": "critical",
    },
    {
        "flag_key": "subsidy_guarantee_no_income",
        "display_name": "Subsidy guarantee without income verification",
        "description": "Made guarantees about specific subsidy amounts before verifying income",
        "severity": "critical",
    },
    {
        "flag_key": "payment_before_consent",
        "display_name": "Payment before consent forms",
        "description": "Collected payment information before sending and explaining consent forms",
        "severity": "critical",
    },
    # High priority (flag for review)
    {
        "flag_key": "aca_without_income",
        "display_name": "ACA pitch without income verification",
        "description": "Skipped income verification but still quoted an ACA plan",
        "severity": "high",
    },
    {
        "flag_key": "missing_careconnect_clarification",
        "display_name": "Missing CareConnect clarification",
        "description": "Did not mention this is NOT health insurance when discussing CareConnect dental/vision benefits",
        "severity": "high",
    },
    {
        "flag_key": "missing_rogue_agent_warning",
        "display_name": "Missing rogue agent warning",
        "description": "Did not warn customer about rogue agents or duplicate plan picking on healthcare.gov",
        "severity": "high",
    },
    {
        "flag_key": "excessive_talk_ratio",
        "display_name": "Excessive talk ratio",
        "description": "Agent talk ratio exceeded threshold, indicating monologuing rather than conversation",
        "severity": "high",
        "threshold_type": "percentage",
        "threshold_value": 70.0,
    },
    # Medium priority (coaching opportunity)
    {
        "flag_key": "skipped_health_discovery",
        "display_name": "Skipped health discovery",
        "description": "Did not ask about pre-existing conditions or prescription medications",
        "severity": "medium",
    },
    {
        "flag_key": "skipped_doctor_preference",
        "display_name": "Skipped doctor preference",
        "description": "Did not ask about doctor preferences (priority to keep vs. open to any)",
        "severity": "medium",
    },
    {
        "flag_key": "rushed_closing",
        "display_name": "Rushed closing",
        "description": "Rushed through closing without completing verbal confirmations",
        "severity": "medium",
    },
    {
        "flag_key": "no_enrollment_urgency",
        "display_name": "No enrollment urgency",
        "description": "Did not create appropriate urgency around enrollment deadline",
        "severity": "medium",
    },
]

for _position, _flag in enumerate(DEFAULT_RED_FLAGS):
    _flag.setdefault("threshold_type", "boolean")
    _flag.setdefault("threshold_value", None)
    _flag.setdefault("is_enabled", True)
    _flag["sort_order"] = _position
