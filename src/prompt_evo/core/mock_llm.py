"""确定性的模拟 LLM 服务 / Deterministic mock LLM service

没有配置 API Key 时使用，也用于演示和测试。
"""

from prompt_evo.core.llm_service import LLMService
from prompt_evo.models import (
    ConversationFlow, CriterionCategory, CriterionResult, ExpectedBehavior,
    OptimizationProposal, PromptAnalysis, SuccessCriterion, TestCase,
)

OPTIMIZED_MARKER = "[optimized]"

_MOCK_TEST_CASES = [
    {
        "id": "tc-1",
        "scenario_description": "Happy path: Customer calls to book an appointment and provides all required information",
        "scenario_type": "happy-path",
        "user_input_sequence": [
            {"turn": 1, "utterance": "Hi, I would like to book an appointment."},
            {"turn": 2, "utterance": "My name is John Smith."},
            {"turn": 3, "utterance": "john.smith@example.com"},
        ],
        "success_criteria": [
            {
                "id": "sc-1-1",
                "description": "Agent greets the caller politely",
                "category": "behavioral",
                "evaluation_prompt": "Does the agent greet the caller in a polite and professional manner?",
            },
            {
                "id": "sc-1-2",
                "description": "Agent collects caller name",
                "category": "functional",
                "evaluation_prompt": "Does the agent ask for or acknowledge the caller's name?",
            },
        ],
    },
    {
        "id": "tc-2",
        "scenario_description": "Happy path: Customer inquires about services and agent provides information",
        "scenario_type": "happy-path",
        "user_input_sequence": [
            {"turn": 1, "utterance": "What services do you offer?"},
            {"turn": 2, "utterance": "How much does that cost?"},
        ],
        "success_criteria": [
            {
                "id": "sc-2-1",
                "description": "Agent provides relevant service information",
                "category": "functional",
                "evaluation_prompt": "Does the agent provide information about available services?",
            },
        ],
    },
    {
        "id": "tc-3",
        "scenario_description": "Happy path: Customer follows the complete booking flow from greeting to confirmation",
        "scenario_type": "happy-path",
        "user_input_sequence": [
            {"turn": 1, "utterance": "Hello, I need to schedule a visit."},
            {"turn": 2, "utterance": "Next Tuesday at 2pm works for me."},
            {"turn": 3, "utterance": "Yes, that is confirmed."},
        ],
        "success_criteria": [
            {
                "id": "sc-3-1",
                "description": "Agent follows the greeting script structure",
                "category": "compliance",
                "evaluation_prompt": "Does the agent follow the expected greeting and booking script structure?",
            },
            {
                "id": "sc-3-2",
                "description": "Agent confirms the appointment details",
                "category": "functional",
                "evaluation_prompt": "Does the agent confirm the appointment date and time with the caller?",
            },
        ],
    },
    {
        "id": "tc-4",
        "scenario_description": "Adversarial: Customer goes off-topic and asks unrelated questions",
        "scenario_type": "adversarial",
        "user_input_sequence": [
            {"turn": 1, "utterance": "What is the weather like today?"},
            {"turn": 2, "utterance": "Can you tell me a joke?"},
            {"turn": 3, "utterance": "Actually, I do need to book an appointment."},
        ],
        "success_criteria": [
            {
                "id": "sc-4-1",
                "description": "Agent maintains polite tone when handling off-topic questions",
                "category": "behavioral",
                "evaluation_prompt": "Does the agent remain polite and professional when the caller asks off-topic questions?",
            },
            {
                "id": "sc-4-2",
                "description": "Agent redirects conversation back to its purpose",
                "category": "functional",
                "evaluation_prompt": "Does the agent attempt to redirect the conversation back to its intended purpose?",
            },
        ],
    },
    {
        "id": "tc-5",
        "scenario_description": "Adversarial: Customer refuses to provide required contact information",
        "scenario_type": "adversarial",
        "user_input_sequence": [
            {"turn": 1, "utterance": "I want to book an appointment."},
            {"turn": 2, "utterance": "I don't want to give you my name."},
            {"turn": 3, "utterance": "No, I won't share my email either."},
        ],
        "success_criteria": [
            {
                "id": "sc-5-1",
                "description": "Agent handles refusal gracefully without being pushy",
                "category": "behavioral",
                "evaluation_prompt": "Does the agent handle the caller's refusal to provide information gracefully?",
            },
            {
                "id": "sc-5-2",
                "description": "Agent explains why information is needed",
                "category": "functional",
                "evaluation_prompt": "Does the agent explain why the contact information is needed?",
            },
        ],
    },
    {
        "id": "tc-6",
        "scenario_description": "Adversarial: Customer interrupts the agent mid-sentence repeatedly",
        "scenario_type": "adversarial",
        "user_input_sequence": [
            {"turn": 1, "utterance": "Yeah yeah, skip the intro.", "context": "user interrupts greeting"},
            {"turn": 2, "utterance": "Just tell me the price.", "context": "user interrupts explanation"},
        ],
        "success_criteria": [
            {
                "id": "sc-6-1",
                "description": "Agent adapts to interruptions without losing context",
                "category": "behavioral",
                "evaluation_prompt": "Does the agent handle interruptions gracefully and continue the conversation coherently?",
            },
            {
                "id": "sc-6-2",
                "description": "Agent still collects required information despite interruptions",
                "category": "compliance",
                "evaluation_prompt": "Does the agent still attempt to follow its script and collect required information despite interruptions?",
            },
        ],
    },
]


class MockLLMService(LLMService):
    """返回固定结果：每条标准都通过，优化时在末尾追加标记行"""

    async def analyze_prompt(self, prompt: str) -> PromptAnalysis:
        return PromptAnalysis(
            goals=["Handle customer inquiries", "Collect contact information"],
            conversation_flows=[
                ConversationFlow(
                    name="Greeting Flow",
                    description="Initial greeting and intent identification",
                    steps=["Greet caller", "Ask how to help", "Route to appropriate flow"],
                ),
            ],
            expected_behaviors=[
                ExpectedBehavior(description="Maintain a polite and professional tone", category=CriterionCategory.BEHAVIORAL),
                ExpectedBehavior(description="Collect caller name and email", category=CriterionCategory.FUNCTIONAL),
            ],
            raw_prompt=prompt,
        )

    async def generate_test_cases(self, analysis: PromptAnalysis) -> list[TestCase]:
        return [TestCase.model_validate(data) for data in _MOCK_TEST_CASES]

    async def evaluate_criterion(self, response: str, criterion: SuccessCriterion) -> CriterionResult:
        return CriterionResult(criterion_id=criterion.id, passed=True, explanation="Mock evaluation passed")

    async def optimize_prompt(
        self,
        original: str,
        failures: list[CriterionResult],
        passes: list[CriterionResult],
    ) -> OptimizationProposal:
        return OptimizationProposal(
            original_prompt=original,
            revised_prompt=f"{original}\n{OPTIMIZED_MARKER}",
            targeted_failures=[f.criterion_id for f in failures],
        )
