import json
from pathlib import Path
from typing import Optional

import config
from enums.text_entity import TextEntity


class Localizator:
    localization_dir = Path(__file__).resolve().parent.parent / "l10n"

    @staticmethod
    def get_text(entity: TextEntity, key: str, lang: Optional[str] = None) -> str:
        """
        Get localized text for given entity and key.

        Args:
            entity: Entity type (EMAIL, COMMON)
            key: Localization key
            lang: Optional language code (e.g., "en").
                  If None, uses config.SHOP_LANGUAGE (default).

        Returns:
            Localized text string

        Raises:
            KeyError: If the key is missing from the language file
        """
        language = lang if lang is not None else config.SHOP_LANGUAGE
        localization_file = Localizator.localization_dir / f"{language}.json"

        with open(localization_file, "r", encoding="UTF-8") as f:
            data = json.loads(f.read())
            if entity == TextEntity.EMAIL:
                return data["email"][key]
            else:
                return data["common"][key]

    @staticmethod
    def render_email(template_key: str, data: dict, lang: Optional[str] = None) -> tuple[str, str]:
        """
        Render subject and body of an email template.

        Templates live under "email" as "<key>_subject" and "<key>_body" and
        use str.format placeholders.

        Returns:
            (subject, body)
        """
        subject = Localizator.get_text(TextEntity.EMAIL, f"{template_key}_subject", lang=lang)
        body = Localizator.get_text(TextEntity.EMAIL, f"{template_key}_body", lang=lang)
        return subject.format(**data), body.format(**data)
