"""语音前台 Demo - Agent 实现"""

import os

from openai import OpenAI


def run(utterance: str, prompt: str = None, context: str = None) -> str:
    """
    语音前台 Agent

    Args:
        utterance: 用户话语
        prompt: PromptEvo 传入的、当前被测试的系统提示词
        context: 可选上下文（如"用户打断了问候"）

    Returns:
        Agent 回复
    """
    client = OpenAI(api_key=os.environ.get("OPENAI_API_KEY"))

    messages = [{"role": "system", "content": prompt or ""}]
    if context:
        messages.append({"role": "system", "content": f"Situation: {context}"})
    messages.append({"role": "user", "content": utterance})

    response = client.chat.completions.create(
        model="gpt-4o-mini",
        messages=messages,
        temperature=0.7,
        max_tokens=300,
    )

    return response.choices[0].message.content or ""


if __name__ == "__main__":
    print(run("Hi, I would like to book an appointment.", "You are a friendly dental clinic receptionist."))
