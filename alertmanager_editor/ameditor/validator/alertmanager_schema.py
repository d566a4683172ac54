"""Alertmanager configuration schema.

Pydantic models mirroring the Alertmanager ``alertmanager.yml`` layout. All
models forbid unknown keys and use strict scalar types, so a misspelled key
or a quoted number is reported instead of being silently accepted.
"""

from __future__ import annotations

from typing import Annotated, Any

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    StrictBool,
    StrictInt,
    StrictStr,
    StringConstraints,
    ValidationError,
    model_validator,
)

from ameditor.validator.models import (
    ConfigSchemaError,
    ValidationIssue,
    ValidationSeverity,
)

# Prometheus-style duration: 1d12h, 30s, 500ms ...
Duration = Annotated[
    str,
    StringConstraints(
        strict=True,
        min_length=1,
        pattern=r"^(0|([0-9]+y)?([0-9]+w)?([0-9]+d)?([0-9]+h)?([0-9]+m)?([0-9]+s)?([0-9]+ms)?)$",
    ),
]
LabelMap = dict[StrictStr, StrictStr]


class _StrictModel(BaseModel):
    model_config = ConfigDict(extra="forbid")


# -- shared http settings --


class BasicAuth(_StrictModel):
    username: StrictStr | None = None
    password: StrictStr | None = None
    password_file: StrictStr | None = None


class Authorization(_StrictModel):
    type: StrictStr | None = None
    credentials: StrictStr | None = None
    credentials_file: StrictStr | None = None


class TLSConfig(_StrictModel):
    ca_file: StrictStr | None = None
    cert_file: StrictStr | None = None
    key_file: StrictStr | None = None
    server_name: StrictStr | None = None
    insecure_skip_verify: StrictBool | None = None


class HttpConfig(_StrictModel):
    basic_auth: BasicAuth | None = None
    authorization: Authorization | None = None
    bearer_token: StrictStr | None = None
    bearer_token_file: StrictStr | None = None
    proxy_url: StrictStr | None = None
    tls_config: TLSConfig | None = None
    follow_redirects: StrictBool | None = None

    @model_validator(mode="after")
    def _single_auth_method(self) -> HttpConfig:
        methods = [
            self.basic_auth is not None,
            self.authorization is not None,
            self.bearer_token is not None or self.bearer_token_file is not None,
        ]
        if sum(methods) > 1:
            raise ValueError(
                "at most one of basic_auth, authorization and bearer_token may be configured"
            )
        return self


class GlobalConfig(_StrictModel):
    resolve_timeout: Duration | None = None
    http_config: HttpConfig | None = None
    smtp_from: StrictStr | None = None
    smtp_smarthost: StrictStr | None = None
    smtp_hello: StrictStr | None = None
    smtp_auth_username: StrictStr | None = None
    smtp_auth_password: StrictStr | None = None
    smtp_auth_identity: StrictStr | None = None
    smtp_auth_secret: StrictStr | None = None
    smtp_require_tls: StrictBool | None = None
    slack_api_url: StrictStr | None = None
    victorops_api_key: StrictStr | None = None
    victorops_api_url: StrictStr | None = None
    pagerduty_url: StrictStr | None = None
    opsgenie_api_key: StrictStr | None = None
    opsgenie_api_url: StrictStr | None = None
    wechat_api_url: StrictStr | None = None
    wechat_api_secret: StrictStr | None = None
    wechat_api_corp_id: StrictStr | None = None


# -- notifier configs --


class _NotifierConfig(_StrictModel):
    send_resolved: StrictBool | None = None
    http_config: HttpConfig | None = None


class EmailConfig(_NotifierConfig):
    to: StrictStr
    from_: StrictStr | None = Field(None, alias="from")
    smarthost: StrictStr | None = None
    hello: StrictStr | None = None
    auth_username: StrictStr | None = None
    auth_password: StrictStr | None = None
    auth_secret: StrictStr | None = None
    auth_identity: StrictStr | None = None
    headers: LabelMap | None = None
    html: StrictStr | None = None
    text: StrictStr | None = None
    require_tls: StrictBool | None = None
    tls_config: TLSConfig | None = None


class SlackField(_StrictModel):
    title: StrictStr
    value: StrictStr
    short: StrictBool | None = None


class SlackAction(_StrictModel):
    type: StrictStr
    text: StrictStr
    url: StrictStr | None = None
    style: StrictStr | None = None
    name: StrictStr | None = None
    value: StrictStr | None = None


class SlackConfig(_NotifierConfig):
    api_url: StrictStr | None = None
    api_url_file: StrictStr | None = None
    channel: StrictStr | None = None
    username: StrictStr | None = None
    color: StrictStr | None = None
    title: StrictStr | None = None
    title_link: StrictStr | None = None
    pretext: StrictStr | None = None
    text: StrictStr | None = None
    footer: StrictStr | None = None
    fallback: StrictStr | None = None
    callback_id: StrictStr | None = None
    icon_emoji: StrictStr | None = None
    icon_url: StrictStr | None = None
    image_url: StrictStr | None = None
    thumb_url: StrictStr | None = None
    link_names: StrictBool | None = None
    short_fields: StrictBool | None = None
    mrkdwn_in: list[StrictStr] | None = None
    fields: list[SlackField] | None = None
    actions: list[SlackAction] | None = None


class PagerdutyImage(_StrictModel):
    src: StrictStr
    alt: StrictStr | None = None
    href: StrictStr | None = None


class PagerdutyLink(_StrictModel):
    href: StrictStr
    text: StrictStr | None = None


class PagerdutyConfig(_NotifierConfig):
    routing_key: StrictStr | None = None
    service_key: StrictStr | None = None
    url: StrictStr | None = None
    client: StrictStr | None = None
    client_url: StrictStr | None = None
    description: StrictStr | None = None
    severity: StrictStr | None = None
    class_: StrictStr | None = Field(None, alias="class")
    component: StrictStr | None = None
    group: StrictStr | None = None
    details: LabelMap | None = None
    images: list[PagerdutyImage] | None = None
    links: list[PagerdutyLink] | None = None

    @model_validator(mode="after")
    def _requires_key(self) -> PagerdutyConfig:
        if not self.routing_key and not self.service_key:
            raise ValueError("one of routing_key or service_key must be set")
        return self


class WebhookConfig(_NotifierConfig):
    url: StrictStr
    max_alerts: StrictInt | None = Field(None, ge=0)


class OpsgenieResponder(_StrictModel):
    type: StrictStr
    id: StrictStr | None = None
    name: StrictStr | None = None
    username: StrictStr | None = None


class OpsgenieConfig(_NotifierConfig):
    api_key: StrictStr | None = None
    api_url: StrictStr | None = None
    message: StrictStr | None = None
    description: StrictStr | None = None
    source: StrictStr | None = None
    details: LabelMap | None = None
    responders: list[OpsgenieResponder] | None = None
    tags: StrictStr | None = None
    note: StrictStr | None = None
    priority: StrictStr | None = None


class VictorOpsConfig(_NotifierConfig):
    routing_key: StrictStr
    api_key: StrictStr | None = None
    api_url: StrictStr | None = None
    message_type: StrictStr | None = None
    entity_display_name: StrictStr | None = None
    state_message: StrictStr | None = None
    monitoring_tool: StrictStr | None = None


class PushoverConfig(_NotifierConfig):
    user_key: StrictStr
    token: StrictStr
    title: StrictStr | None = None
    message: StrictStr | None = None
    url: StrictStr | None = None
    url_title: StrictStr | None = None
    sound: StrictStr | None = None
    priority: StrictStr | None = None
    retry: Duration | None = None
    expire: Duration | None = None


class WechatConfig(_NotifierConfig):
    api_secret: StrictStr | None = None
    api_url: StrictStr | None = None
    corp_id: StrictStr | None = None
    message: StrictStr | None = None
    agent_id: StrictStr | None = None
    to_user: StrictStr | None = None
    to_party: StrictStr | None = None
    to_tag: StrictStr | None = None


class Receiver(_StrictModel):
    name: Annotated[StrictStr, StringConstraints(min_length=1)]
    email_configs: list[EmailConfig] | None = None
    slack_configs: list[SlackConfig] | None = None
    pagerduty_configs: list[PagerdutyConfig] | None = None
    webhook_configs: list[WebhookConfig] | None = None
    opsgenie_configs: list[OpsgenieConfig] | None = None
    victorops_configs: list[VictorOpsConfig] | None = None
    pushover_configs: list[PushoverConfig] | None = None
    wechat_configs: list[WechatConfig] | None = None


# -- routing --


class Route(_StrictModel):
    receiver: StrictStr | None = None
    group_by: list[StrictStr] | None = None
    continue_: StrictBool | None = Field(None, alias="continue")
    match: LabelMap | None = None
    match_re: LabelMap | None = None
    matchers: list[StrictStr] | None = None
    group_wait: Duration | None = None
    group_interval: Duration | None = None
    repeat_interval: Duration | None = None
    mute_time_intervals: list[StrictStr] | None = None
    routes: list[Route] | None = None

    def walk(self) -> list[Route]:
        """Return this route followed by all nested routes, depth first."""
        found = [self]
        for child in self.routes or []:
            found.extend(child.walk())
        return found


class InhibitRule(_StrictModel):
    target_match: LabelMap | None = None
    target_match_re: LabelMap | None = None
    target_matchers: list[StrictStr] | None = None
    source_match: LabelMap | None = None
    source_match_re: LabelMap | None = None
    source_matchers: list[StrictStr] | None = None
    equal: list[StrictStr] | None = None


class TimeRange(_StrictModel):
    start_time: StrictStr
    end_time: StrictStr


class TimeInterval(_StrictModel):
    times: list[TimeRange] | None = None
    weekdays: list[StrictStr] | None = None
    days_of_month: list[StrictStr] | None = None
    months: list[StrictStr] | None = None
    years: list[StrictStr] | None = None


class MuteTimeInterval(_StrictModel):
    name: StrictStr
    time_intervals: list[TimeInterval]


class AlertmanagerConfig(_StrictModel):
    """Top-level Alertmanager configuration document."""

    global_: GlobalConfig | None = Field(None, alias="global")
    route: Route
    receivers: list[Receiver]
    inhibit_rules: list[InhibitRule] | None = None
    templates: list[StrictStr] | None = None
    mute_time_intervals: list[MuteTimeInterval] | None = None

    @model_validator(mode="after")
    def _check_references(self) -> AlertmanagerConfig:
        if not self.route.receiver:
            raise ValueError("root route must specify a default receiver")

        names = [r.name for r in self.receivers]
        duplicates = sorted({n for n in names if names.count(n) > 1})
        if duplicates:
            raise ValueError(f"duplicate receiver names: {', '.join(duplicates)}")

        known = set(names)
        for route in self.route.walk():
            if route.receiver and route.receiver not in known:
                raise ValueError(f"undefined receiver '{route.receiver}' used in route")

        intervals = {m.name for m in self.mute_time_intervals or []}
        for route in self.route.walk():
            for name in route.mute_time_intervals or []:
                if name not in intervals:
                    raise ValueError(f"undefined mute time interval '{name}' used in route")
        return self


def _format_loc(loc: tuple[Any, ...]) -> str:
    parts: list[str] = []
    for item in loc:
        if isinstance(item, int):
            parts.append(f"[{item}]")
        else:
            parts.append(f".{item}" if parts else str(item))
    return "".join(parts)


def _schema_error(exc: ValidationError) -> ConfigSchemaError:
    errors: list[str] = []
    issues: list[ValidationIssue] = []
    for err in exc.errors():
        path = _format_loc(err.get("loc", ()))
        message = f"{path}: {err['msg']}" if path else err["msg"]
        errors.append(message)
        issues.append(
            ValidationIssue(
                severity=ValidationSeverity.error,
                check_name="alertmanager_schema",
                message=message,
                path=path or None,
            )
        )
    return ConfigSchemaError(errors, issues=issues)


async def validate_config(data: Any) -> AlertmanagerConfig:
    """Validate parsed YAML against the Alertmanager schema.

    Resolves to the typed config on success; raises ``ConfigSchemaError``
    carrying every failure otherwise.
    """
    try:
        return AlertmanagerConfig.model_validate(data)
    except ValidationError as e:
        raise _schema_error(e) from e


def config_json_schema() -> dict[str, Any]:
    """JSON Schema handed to the editor widget for inline checks."""
    return AlertmanagerConfig.model_json_schema(by_alias=True)
