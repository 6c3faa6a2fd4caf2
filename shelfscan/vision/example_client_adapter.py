"""Example vision client adapter.

Use this module as a reference when implementing new provider adapters.
Implement BaseVisionClient and register the provider in VisionDetectorFactory.
"""

import json
from typing import ClassVar

from shelfscan.vision.client_base import BaseVisionClient


class ExampleVisionClientAdapter(BaseVisionClient):
    """Example adapter that returns a fixed list of books.

    No network calls. Useful for local development and tests.
    """

    DEFAULT_RESPONSE: ClassVar[list[dict[str, object]]] = [
        {
            "title": "הארי פוטר ואבן החכמים",
            "author": "ג'יי קיי רולינג",
            "series": "הארי פוטר",
            "series_number": 1,
            "genre": "פנטזיה",
            "age_range": "10-12",
        },
        {
            "title": "הנסיך הקטן",
            "author": "אנטואן דה סנט-אכזופרי",
            "series": "",
            "series_number": None,
            "genre": "ילדים",
            "age_range": "כל הגילאים",
        },
    ]

    def create_vision_completion(
        self,
        *,
        model: str,
        system_prompt: str,
        user_prompt: str,
        image_bytes: bytes,
        mime_type: str,
        timeout_seconds: float,
    ) -> str:
        _ = model, system_prompt, user_prompt, image_bytes, mime_type, timeout_seconds
        return json.dumps(self.DEFAULT_RESPONSE, ensure_ascii=False)
