from typing import Literal, Type, TypeVar
from openai import AsyncOpenAI
from pydantic import BaseModel

M = TypeVar("M", bound=BaseModel)


def get_provider(base_url: str):
    if 'openrouter' in base_url:
        return 'openrouter'
    if 'openai' in base_url:
        return 'openai'
    if 'localhost' in base_url or '127.0.0.1' in base_url:
        return 'local'
    raise ValueError(
        f"Unable to determine provider from base_url: {base_url!r}. "
        "Expected it to contain 'openrouter', 'openai', or 'localhost'."
    )


async def get_so_completion(
    log: list,
    model_name: str,
    client: AsyncOpenAI,
    pydantic_model: Type[M],
    provider_name: Literal['openai', 'openrouter', 'local'],
) -> M:
    """Ask the model for an answer shaped like `pydantic_model` and parse it."""
    job = None
    if provider_name == 'openai':
        completion = await client.beta.chat.completions.parse(
            model=model_name,
            response_format=pydantic_model,
            messages=log,
            max_completion_tokens=1000,
        )
        job = completion.choices[0].message.parsed
    elif provider_name == 'openrouter' or provider_name == "local":
        model_schema = pydantic_model.model_json_schema()
        completion = await client.chat.completions.create(
            model=model_name,
            messages=log,
            response_format={
                "type": "json_schema",
                "json_schema": {
                    "name": pydantic_model.__name__,
                    "schema": model_schema
                }
            },
            temperature=0.0
        )
        content = completion.choices[0].message.content
        if content is not None:
            job = pydantic_model.model_validate_json(content)
    else:
        raise ValueError(
            f"Unsupported provider_name: {provider_name!r}. "
            "Supported providers are: 'openai', 'openrouter', 'local'."
        )

    if job is None:
        raise RuntimeError(
            f"Completion returned no result for provider {provider_name!r} "
            f"and model {model_name!r}. This typically indicates an empty API response "
            "or a parsing/formatting issue."
        )
    return job
