"""Prompt templates for task triage.

Prompts are written in Simplified Chinese, the product language. The three
assessment questions have fixed themes (1: urgency, 2: importance,
3: delegability/consequences) and the classification prompts rely on that
order, so QUESTION_FRAMEWORK and CLASSIFICATION_GUIDANCE must change together.
"""

from typing import List, Mapping, Sequence

from ..models import AnswerMap, BatchTaskInput, ProviderConfig, TaskInput

QUESTIONS_PER_TASK = 3
MAX_QUESTION_CHARS = 15

SYSTEM_PROMPT = """你是一位精通艾森豪威尔矩阵 (Eisenhower Matrix) 的时间管理与效率顾问。
你的工作是帮助用户快速判断任务的“重要性”和“紧急性”，并给出务实、可执行的建议。
始终严格按照要求的 JSON 结构输出，不要输出任何额外文字。"""

QUESTION_FRAMEWORK = f"""评估问题约定（每个任务恰好 {QUESTIONS_PER_TASK} 个是/否问题，每个问题不超过 {MAX_QUESTION_CHARS} 个汉字）：
1. 问题 1 侧重“紧急性”：如果不立刻做，是否会产生时间上的严重后果。
2. 问题 2 侧重“重要性”：是否直接贡献于核心目标/KPI/人生目标。
3. 问题 3 侧重“可授权性或后果严重程度”：能否交给别人做，或不做的影响范围有多大。"""

QUESTION_STYLE_RULES = """要求：
- 问题必须极简短、直觉化，用户读完能立刻下意识判断。
- 只能用“是”或“否”回答。
- 严格按照上述顺序和主题生成问题。
- 所有问题使用简体中文。"""

QUADRANT_DEFINITIONS = """象限定义：
- Do（马上做）：重要且紧急
- Plan（计划做）：重要但不紧急
- Delegate（授权做）：不重要但紧急
- Eliminate（减少做）：不重要且不紧急"""

CLASSIFICATION_GUIDANCE = """判断规则：
- 问题 1 回答“是” ⇒ 紧急 (isUrgent = true)。
- 问题 2 回答“是” ⇒ 重要 (isImportant = true)。
- 问题 3 用于判断能否授权或后果严重程度，可用于修正判断。
- quadrantName 必须与 isImportant / isUrgent 一致，且只能是 Do、Plan、Delegate、Eliminate 之一。"""

ADVICE_REQUIREMENTS = """战略建议 (advice) 必须足够具体，并同时包含：
(a) 一个具名的方法或原则（例如番茄工作法、二八法则、时间块、GTD 等），说明如何应用到该任务；
(b) 一个明确的风险或陷阱提醒。"""

BILINGUAL_INSTRUCTION = """语言要求：reasoning、advice 以及每一个步骤都必须输出为对象 {"cn": "简体中文内容", "en": "English content"}，两种语言内容一致。"""

CHINESE_ONLY_INSTRUCTION = "语言要求：所有输出必须使用简体中文。"


def _language_instruction(config: ProviderConfig) -> str:
    return BILINGUAL_INSTRUCTION if config.bilingual_output else CHINESE_ONLY_INSTRUCTION


def _question_context(config: ProviderConfig) -> str:
    user_context = config.user_context.strip()
    if not user_context:
        return ""
    return f'用户背景角色: "{user_context}"。请根据此角色调整问题视角。'


def _advice_context(config: ProviderConfig) -> str:
    user_context = config.user_context.strip()
    if not user_context:
        return ""
    return f"当前用户职业/角色: {user_context}。请根据此身份提供专业的建议。"


def _custom_instruction(config: ProviderConfig) -> str:
    custom_prompt = config.custom_prompt.strip()
    if not custom_prompt:
        return ""
    return f"额外分析指令:\n{custom_prompt}"


def _join_sections(sections: Sequence[str]) -> str:
    """Join non-empty prompt sections with blank lines."""
    return "\n\n".join(section for section in sections if section)


def _format_answer(value: bool) -> str:
    return "是" if value else "否"


def format_qa_transcript(questions: Sequence[str], answers: AnswerMap) -> str:
    """Render questions and their answers as numbered Q/A lines.

    Args:
        questions: Question texts in generation order
        answers: Answers keyed by question index as a string

    Returns:
        One ``问N: ... 答: 是/否`` line per question
    """
    lines = []
    for index, question in enumerate(questions):
        answer = answers.get(str(index))
        answer_text = _format_answer(answer) if answer is not None else "未回答"
        lines.append(f"问{index + 1}: {question} 答: {answer_text}")
    return "\n".join(lines)


def format_task_line(task: BatchTaskInput) -> str:
    """Render one batch task with its correlation id."""
    return f'[{task.id}] 任务: "{task.name}" | 截止日期: "{task.estimated_time}"'


def build_questions_prompt(task: TaskInput, config: ProviderConfig) -> str:
    """
    Build the prompt that asks for assessment questions for one task.

    Args:
        task: The task to assess
        config: Provider configuration (user context, custom prompt)

    Returns:
        Prompt text
    """
    header = f'任务名称: "{task.name}"\n截止日期: "{task.estimated_time}"'
    request = (
        "我需要快速判断这个任务是否属于“重要”（高价值/核心目标）和“紧急”（必须立刻做）。\n"
        f"请生成 {QUESTIONS_PER_TASK} 个**极简短、直觉化**的 是/否 (Yes/No) 问题。"
    )
    output_format = '输出格式: {"questions": ["问题1", "问题2", "问题3"]}'

    return _join_sections(
        [
            header,
            _question_context(config),
            request,
            QUESTION_FRAMEWORK,
            QUESTION_STYLE_RULES,
            _custom_instruction(config),
            output_format,
        ]
    )


def build_classification_prompt(
    task: TaskInput,
    questions: Sequence[str],
    answers: AnswerMap,
    config: ProviderConfig,
) -> str:
    """
    Build the prompt that classifies one task from its Q/A transcript.

    Args:
        task: The task being classified
        questions: Question texts in generation order
        answers: Answers keyed by question index as a string
        config: Provider configuration

    Returns:
        Prompt text
    """
    header = f'任务: "{task.name}"\n截止日期: "{task.estimated_time}"'
    transcript = "用户问答背景:\n" + format_qa_transcript(questions, answers)
    request = (
        "基于以上信息，将任务分类到艾森豪威尔矩阵中。\n"
        "请给出分类理由 (reasoning)、3-5 个具体可执行的任务拆解步骤 (steps) 和战略建议 (advice)。"
    )
    output_format = (
        "输出格式: {\"isImportant\": true/false, \"isUrgent\": true/false, "
        "\"quadrantName\": \"Do|Plan|Delegate|Eliminate\", \"reasoning\": ..., "
        "\"steps\": [...], \"advice\": ...}"
    )

    return _join_sections(
        [
            header,
            transcript,
            QUESTION_FRAMEWORK,
            _advice_context(config),
            _custom_instruction(config),
            request,
            QUADRANT_DEFINITIONS,
            CLASSIFICATION_GUIDANCE,
            ADVICE_REQUIREMENTS,
            _language_instruction(config),
            output_format,
        ]
    )


def build_batch_questions_prompt(
    tasks: Sequence[BatchTaskInput], config: ProviderConfig
) -> str:
    """
    Build the prompt that asks for assessment questions for several tasks.

    Each task's correlation id is embedded in the prompt and the model is told
    to key its response by that exact id.

    Args:
        tasks: Batch tasks with correlation ids
        config: Provider configuration

    Returns:
        Prompt text
    """
    task_lines = "\n".join(format_task_line(task) for task in tasks)
    ids = ", ".join(f'"{task.id}"' for task in tasks)
    request = (
        f"以下共有 {len(tasks)} 个任务，方括号中是每个任务的 ID。\n"
        f"请为每个任务分别生成 {QUESTIONS_PER_TASK} 个**极简短、直觉化**的 是/否 问题，"
        "用于判断该任务的重要性和紧急性。"
    )
    keying = (
        f"返回一个 JSON 对象，键必须是任务 ID（原样使用，不得修改、不得遗漏）: {ids}。\n"
        '值为该任务的问题数组。例如: {"<任务ID>": ["问题1", "问题2", "问题3"]}'
    )

    return _join_sections(
        [
            "任务列表:\n" + task_lines,
            _question_context(config),
            request,
            QUESTION_FRAMEWORK,
            QUESTION_STYLE_RULES,
            _custom_instruction(config),
            keying,
        ]
    )


def build_batch_classification_prompt(
    tasks: Sequence[BatchTaskInput],
    questions_map: Mapping[str, List[str]],
    answers_map: Mapping[str, AnswerMap],
    config: ProviderConfig,
) -> str:
    """
    Build the prompt that classifies every task of a batch in one call.

    Steps are not requested in batch mode.

    Args:
        tasks: Batch tasks with correlation ids
        questions_map: Question texts keyed by task id
        answers_map: Answers keyed by task id, then question index
        config: Provider configuration

    Returns:
        Prompt text
    """
    blocks = []
    for task in tasks:
        transcript = format_qa_transcript(
            questions_map.get(task.id, []), answers_map.get(task.id, {})
        )
        blocks.append(f"{format_task_line(task)}\n{transcript}")

    request = (
        f"以上共有 {len(tasks)} 个任务及其问答。请综合比较所有任务，"
        "将每个任务分类到艾森豪威尔矩阵中，并给出分类理由 (reasoning) 和战略建议 (advice)。"
    )
    keying = (
        '返回 JSON 对象 {"results": [...]}，数组中每个任务一项，'
        '格式为 {"taskId": "<任务ID>", "quadrantName": "Do|Plan|Delegate|Eliminate", '
        '"reasoning": ..., "advice": ...}。\n'
        "taskId 必须与方括号中的任务 ID 完全一致。"
    )

    return _join_sections(
        [
            "任务与问答:\n" + "\n\n".join(blocks),
            QUESTION_FRAMEWORK,
            _advice_context(config),
            _custom_instruction(config),
            request,
            QUADRANT_DEFINITIONS,
            CLASSIFICATION_GUIDANCE,
            ADVICE_REQUIREMENTS,
            _language_instruction(config),
            keying,
        ]
    )
