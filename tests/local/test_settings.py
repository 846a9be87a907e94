"""Settings merge and resolution tests."""
import pytest
from lchat.schemas.settings import BedrockChatSettings, ChatSettings
from lchat.schemas.settings import MissingSettingError, OpenAiChatSettings
from lchat.schemas.settings import merge_settings, resolve_settings


def test_provider_tier_used_when_others_absent():
    """Temperature from the provider tier survives when request and model are None."""
    merged = merge_settings(None, None, OpenAiChatSettings(temperature=0.7))
    assert merged == {'temperature': 0.7}


def test_request_tier_wins():
    used = resolve_settings(
        BedrockChatSettings,
        request=BedrockChatSettings(temperature=0.1),
        model=BedrockChatSettings(temperature=0.5, max_tokens=100),
        provider=BedrockChatSettings.default(),
    )

    assert used.temperature == 0.1
    assert used.max_tokens == 100
    assert used.top_p == 0.9
    assert used.top_k == 0


def test_model_tier_wins_over_provider():
    used = resolve_settings(
        BedrockChatSettings,
        model=BedrockChatSettings(top_k=50),
        provider=BedrockChatSettings.default(),
    )
    assert used.top_k == 50
    assert used.max_tokens == BedrockChatSettings.default().max_tokens


def test_zero_values_are_not_skipped():
    """Only None cascades; falsy values are real overrides."""
    used = resolve_settings(
        BedrockChatSettings,
        request=BedrockChatSettings(temperature=0.0),
        provider=BedrockChatSettings.default(),
    )
    assert used.temperature == 0.0


def test_generic_request_settings_only_contribute_generic_fields():
    used = resolve_settings(
        BedrockChatSettings,
        request=ChatSettings(stop_sequences=['\n\n'], user='alice'),
        provider=BedrockChatSettings.default(),
    )

    assert isinstance(used, BedrockChatSettings)
    assert used.stop_sequences == ['\n\n']
    assert used.user == 'alice'
    assert used.temperature == 0.7


def test_missing_required_field_names_the_field():
    with pytest.raises(MissingSettingError) as exc_info:
        resolve_settings(
            BedrockChatSettings,
            request=BedrockChatSettings(temperature=0.3),
            provider=BedrockChatSettings(max_tokens=10, top_p=0.5),
        )

    assert exc_info.value.field == 'top_k'
    assert 'top_k' in str(exc_info.value)
    assert isinstance(exc_info.value, ValueError)


def test_optional_field_may_stay_unset():
    used = resolve_settings(OpenAiChatSettings, provider=OpenAiChatSettings.default())
    assert used.max_tokens is None
    assert used.temperature == 1.0


def test_resolution_does_not_mutate_tiers():
    request = BedrockChatSettings(temperature=0.2)
    provider = BedrockChatSettings.default()
    before = (request.model_dump(), provider.model_dump())

    used = resolve_settings(BedrockChatSettings, request=request, provider=provider)

    assert used is not request
    assert used is not provider
    assert (request.model_dump(), provider.model_dump()) == before


def test_merge_is_left_biased_across_many_tiers():
    tiers = [
        ChatSettings(user='first'),
        ChatSettings(user='second', stop_sequences=['a']),
        ChatSettings(user='third', stop_sequences=['b']),
    ]
    assert merge_settings(*tiers) == {'user': 'first', 'stop_sequences': ['a']}
    assert merge_settings() == {}


if __name__ == '__main__':
    __import__('pytest').main([__file__, '-v'])
