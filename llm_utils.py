"""
Unified LLM utilities for text and image generation.
Dispatches to Google (Gemini / Imagen), OpenAI or Hugging Face based on .env TEXT_PROVIDER / IMAGE_PROVIDER.

.env variables (see config.py for defaults):
  TEXT_PROVIDER           - "google" or "openai" (default: google)
  TEXT_MODEL_GOOGLE       - Gemini model (default: gemini-2.5-flash)
  TEXT_MODEL_OPENAI       - OpenAI chat model
  IMAGE_PROVIDER          - "google", "huggingface" or "openai" (default: google)
  IMAGE_MODEL_*           - image model per storyboard engine / provider

API keys are passed in explicitly by the caller (see credentials.py); a missing key
raises MissingCredential before any client is created. Provider failures are mapped
to QuotaExceeded / ResultMissing / GenerationFailed. Nothing here retries.
"""

import base64
from typing import Any

import requests

import config
from generation_errors import GenerationError, MissingCredential, ResultMissing, classify_error
from storyboard_config import ASPECT_RATIO_DIMENSIONS

TEXT_PROVIDERS = ("google", "openai")
IMAGE_PROVIDERS = ("google", "huggingface", "openai")

HUGGINGFACE_API_URL = "https://router.huggingface.co/hf-inference/models/{model}"
HUGGINGFACE_TIMEOUT = 120

OPENAI_IMAGE_SIZES = {
    "16:9": "1536x1024",
    "9:16": "1024x1536",
}


def _log(msg: str, verbose_only: bool = False) -> None:
    """Log with [GENERATION] prefix. Use verbose_only for extra debug output."""
    if verbose_only and not config.DEBUG:
        return
    print(f"[GENERATION] {msg}")


def get_text_model_display(provider: str | None = None) -> str:
    """Return a short string for logging: provider / model (e.g. 'google / gemini-2.5-flash')."""
    prov = (provider or config.TEXT_PROVIDER).lower()
    model = config.TEXT_MODEL_OPENAI if prov == "openai" else config.TEXT_MODEL_GOOGLE
    return f"{prov} / {model}"


def _require_api_key(api_key: str | None, provider: str) -> str:
    key = (api_key or "").strip()
    if not key:
        raise MissingCredential(f"No API key available for provider '{provider}'.")
    return key


def _resolve_json_schema(schema: dict | type) -> dict:
    """Resolve a JSON schema from a Pydantic model or dict."""
    if isinstance(schema, dict):
        return schema
    if hasattr(schema, "model_json_schema"):
        return schema.model_json_schema()
    raise TypeError("response_json_schema must be a dict or Pydantic BaseModel")


def _ensure_openai_schema(schema: dict) -> dict:
    """Ensure schema has additionalProperties: false for OpenAI Structured Outputs."""
    if schema.get("type") != "object":
        if "items" in schema and isinstance(schema["items"], dict):
            result = dict(schema)
            result["items"] = _ensure_openai_schema(schema["items"])
            return result
        return schema
    result = dict(schema)
    if "additionalProperties" not in result:
        result["additionalProperties"] = False
    if "properties" in result:
        result["properties"] = {
            k: _ensure_openai_schema(v) if isinstance(v, dict) else v
            for k, v in result["properties"].items()
        }
    return result


class _HttpStatusError(Exception):
    def __init__(self, status_code: int, message: str):
        super().__init__(f"HTTP {status_code}: {message}")
        self.status_code = status_code


def _to_data_uri(img_bytes: bytes, mime_type: str = "image/png") -> str:
    return f"data:{mime_type};base64,{base64.b64encode(img_bytes).decode('ascii')}"


def _openai_text(
    messages: list[dict[str, str]],
    api_key: str,
    model_name: str,
    temperature: float,
    schema_dict: dict | None,
) -> str:
    from openai import OpenAI
    client = OpenAI(api_key=api_key)
    req: dict[str, Any] = {
        "model": model_name,
        "messages": messages,
        "temperature": temperature,
    }
    if schema_dict is not None:
        # Structured Outputs: pass schema in response_format
        openai_schema = _ensure_openai_schema(schema_dict)
        req["response_format"] = {
            "type": "json_schema",
            "json_schema": {
                "name": openai_schema.get("title", "response"),
                "strict": True,
                "schema": openai_schema,
            },
        }
    response = client.chat.completions.create(**req)
    if not response.choices:
        return ""
    return response.choices[0].message.content or ""


def _google_text(
    messages: list[dict[str, str]],
    api_key: str,
    model_name: str,
    temperature: float,
    schema_dict: dict | None,
) -> str:
    from google import genai
    from google.genai import types
    client = genai.Client(api_key=api_key)
    system_parts: list[str] = []
    user_parts: list[str] = []
    for m in messages:
        role = (m.get("role") or "user").lower()
        content = (m.get("content") or "").strip()
        if not content:
            continue
        if role == "system":
            system_parts.append(content)
        else:
            user_parts.append(content)
    config_kw: dict[str, Any] = {"temperature": temperature}
    if system_parts:
        config_kw["system_instruction"] = "\n\n".join(system_parts)
    if schema_dict is not None:
        config_kw["response_mime_type"] = "application/json"
        config_kw["response_json_schema"] = schema_dict
    response = client.models.generate_content(
        model=model_name,
        contents="\n\n".join(user_parts),
        config=types.GenerateContentConfig(**config_kw),
    )
    if not response:
        return ""
    text = getattr(response, "text", None) or ""
    if not text and getattr(response, "candidates", None):
        c0 = response.candidates[0]
        if getattr(c0, "content", None) and getattr(c0.content, "parts", None):
            text = getattr(c0.content.parts[0], "text", None) or ""
    return text


def generate_text(
    messages: list[dict[str, str]],
    api_key: str | None,
    model: str | None = None,
    provider: str | None = None,
    temperature: float = 0.7,
    response_json_schema: dict | type | None = None,
) -> str:
    """
    Generate text from messages using Google Gemini or OpenAI.

    Args:
        messages: List of {"role": "user"|"system", "content": str} (OpenAI shape).
        api_key: Key for the selected provider; empty/None raises MissingCredential.
        model: Model name; if None, use TEXT_MODEL_GOOGLE or TEXT_MODEL_OPENAI.
        provider: "google" or "openai"; if None, use env TEXT_PROVIDER.
        temperature: Sampling temperature.
        response_json_schema: Optional JSON schema (dict or Pydantic BaseModel) for structured
            output. Passed in the API config, not the prompt.

    Returns:
        The assistant reply as a single non-empty string.

    Raises:
        MissingCredential, QuotaExceeded, ResultMissing, GenerationFailed
    """
    prov = (provider or config.TEXT_PROVIDER).lower()
    if prov not in TEXT_PROVIDERS:
        raise ValueError(
            f"TEXT_PROVIDER must be one of {TEXT_PROVIDERS}. Got: {prov}. "
            "Set TEXT_PROVIDER in .env or pass provider=."
        )
    key = _require_api_key(api_key, prov)
    schema_dict = _resolve_json_schema(response_json_schema) if response_json_schema is not None else None
    model_name = model or (config.TEXT_MODEL_OPENAI if prov == "openai" else config.TEXT_MODEL_GOOGLE)
    _log(f"Text request -> {prov} / {model_name} (schema={'yes' if schema_dict else 'no'})", verbose_only=True)

    try:
        if prov == "openai":
            text = _openai_text(messages, key, model_name, temperature, schema_dict)
        else:
            text = _google_text(messages, key, model_name, temperature, schema_dict)
    except GenerationError:
        raise
    except Exception as e:
        raise classify_error(e) from e

    if not text or not text.strip():
        raise ResultMissing(f"{prov} returned empty text. The model may have blocked the response.")
    return text


def _google_image(prompt: str, api_key: str, model_name: str, aspect_ratio: str) -> str:
    from google import genai
    from google.genai import types
    client = genai.Client(api_key=api_key)

    if "imagen" in model_name.lower():
        response = client.models.generate_images(
            model=model_name,
            prompt=prompt,
            config=types.GenerateImagesConfig(
                number_of_images=1,
                aspect_ratio=aspect_ratio,
            ),
        )
        generated = getattr(response, "generated_images", None) or []
        if generated and getattr(generated[0], "image", None):
            image = generated[0].image
            img_bytes = getattr(image, "image_bytes", None)
            if img_bytes:
                return _to_data_uri(img_bytes, getattr(image, "mime_type", None) or "image/png")
        raise ResultMissing("Imagen returned no image data.")

    # Image-capable Gemini model returns the image as an inline part
    response = client.models.generate_content(
        model=model_name,
        contents=f"{prompt}\n\nAspect ratio: {aspect_ratio}.",
    )
    if getattr(response, "candidates", None):
        c0 = response.candidates[0]
        if getattr(c0, "content", None) and getattr(c0.content, "parts", None):
            for part in c0.content.parts:
                inline = getattr(part, "inline_data", None)
                if inline and getattr(inline, "data", None):
                    return _to_data_uri(inline.data, getattr(inline, "mime_type", None) or "image/png")
    raise ResultMissing(
        f"Google image model '{model_name}' did not return image data. "
        "Use an image-capable model (imagen-* or gemini-*-image)."
    )


def _openai_image(prompt: str, api_key: str, model_name: str, aspect_ratio: str) -> str:
    from openai import OpenAI
    client = OpenAI(api_key=api_key)
    req_kwargs: dict[str, Any] = {
        "model": model_name,
        "prompt": prompt,
        "size": OPENAI_IMAGE_SIZES[aspect_ratio],
        "n": 1,
    }
    # response_format is only supported for dall-e models; GPT image models always return base64
    if model_name.lower().startswith("dall-e-"):
        req_kwargs["response_format"] = "b64_json"
    resp = client.images.generate(**req_kwargs)
    b64_data = getattr(resp.data[0], "b64_json", None) if resp.data else None
    if not b64_data:
        raise ResultMissing("OpenAI image response had no b64_json")
    return f"data:image/png;base64,{b64_data if isinstance(b64_data, str) else b64_data.decode('ascii')}"


def _huggingface_image(prompt: str, api_key: str, model_name: str, aspect_ratio: str) -> str:
    width, height = ASPECT_RATIO_DIMENSIONS[aspect_ratio]
    resp = requests.post(
        HUGGINGFACE_API_URL.format(model=model_name),
        headers={"Authorization": f"Bearer {api_key}"},
        json={"inputs": prompt, "parameters": {"width": width, "height": height}},
        timeout=HUGGINGFACE_TIMEOUT,
    )
    if resp.status_code != 200:
        raise classify_error(_HttpStatusError(resp.status_code, resp.text[:300]))
    mime_type = (resp.headers.get("content-type") or "image/png").split(";")[0]
    if not resp.content or not mime_type.startswith("image/"):
        raise ResultMissing(f"Hugging Face returned no image data (content-type {mime_type}).")
    return _to_data_uri(resp.content, mime_type)


def resolve_image_model(provider: str, engine: str | None = None) -> str:
    """Pick the image model: Google uses the storyboard engine, other providers a single model."""
    if provider == "openai":
        return config.IMAGE_MODEL_OPENAI
    if provider == "huggingface":
        return config.IMAGE_MODEL_HUGGINGFACE
    engine_models = {
        "nano": config.IMAGE_MODEL_NANO,
        "banana": config.IMAGE_MODEL_BANANA,
        "pro": config.IMAGE_MODEL_PRO,
    }
    return engine_models.get((engine or "nano").lower(), config.IMAGE_MODEL_NANO)


def generate_image(
    prompt: str,
    api_key: str | None,
    aspect_ratio: str = "16:9",
    model: str | None = None,
    provider: str | None = None,
    engine: str | None = None,
) -> str:
    """
    Generate one image from a text prompt.

    Args:
        prompt: The image description.
        api_key: Key for the selected provider; empty/None raises MissingCredential.
        aspect_ratio: "16:9" or "9:16".
        model: Model name; if None, resolved from provider and engine.
        provider: "google", "huggingface" or "openai"; if None, use env IMAGE_PROVIDER.
        engine: Storyboard engine ("nano", "banana", "pro"), used by the Google provider.

    Returns:
        An image reference (data URI).

    Raises:
        MissingCredential, QuotaExceeded, ResultMissing, GenerationFailed
    """
    prov = (provider or config.IMAGE_PROVIDER).lower()
    if prov not in IMAGE_PROVIDERS:
        raise ValueError(
            f"IMAGE_PROVIDER must be one of {IMAGE_PROVIDERS}. Got: {prov}. "
            "Set IMAGE_PROVIDER in .env or pass provider=."
        )
    if aspect_ratio not in ASPECT_RATIO_DIMENSIONS:
        raise ValueError(f"aspect_ratio must be one of {list(ASPECT_RATIO_DIMENSIONS)}. Got: {aspect_ratio}")
    key = _require_api_key(api_key, prov)
    model_name = model or resolve_image_model(prov, engine)
    _log(f"Image request -> {prov} / {model_name} ({aspect_ratio})", verbose_only=True)

    try:
        if prov == "openai":
            return _openai_image(prompt, key, model_name, aspect_ratio)
        if prov == "huggingface":
            return _huggingface_image(prompt, key, model_name, aspect_ratio)
        return _google_image(prompt, key, model_name, aspect_ratio)
    except GenerationError:
        raise
    except Exception as e:
        raise classify_error(e) from e
