"""Localized message tables for error reporting.

Lookups go ``"<category>:<code>"`` first, then ``"<category>"``, and fall
back to English for locales or keys a table does not define.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Union

from ccvm.core.classifier import ErrorCategory


DEFAULT_LOCALE = "en"


@dataclass(frozen=True)
class MessageTemplate:
    title: str
    description: str
    suggestions: tuple[str, ...] = ()
    icon: str = "❌"


_EN: dict[str, MessageTemplate] = {
    "network": MessageTemplate(
        "Network request failed",
        "The provider endpoint could not be reached.",
        (
            "Check that your network connection is working",
            "Verify the DNS name in the provider's base URL",
            "If you are behind a proxy or VPN, check its settings",
        ),
        icon="🌐",
    ),
    "network:ENOTFOUND": MessageTemplate(
        "Host not found",
        "The provider's host name could not be resolved.",
        (
            "Check the spelling of the base URL",
            "Run 'nslookup <host>' to test DNS resolution",
            "Try another network or DNS server",
        ),
        icon="🌐",
    ),
    "network:ECONNREFUSED": MessageTemplate(
        "Connection refused",
        "The server rejected the connection.",
        (
            "Check that the API service is running",
            "Verify the port in the base URL",
            "Make sure a firewall is not blocking the connection",
        ),
        icon="🚫",
    ),
    "network:TIMEOUT": MessageTemplate(
        "Request timed out",
        "The server took too long to respond.",
        (
            "Check your connection speed",
            "Increase the profile timeout with 'ccvm provider edit <alias> --timeout'",
            "Retry later or switch to another provider",
        ),
        icon="⏱",
    ),
    "auth": MessageTemplate(
        "Authentication failed",
        "The provider rejected the supplied credentials.",
        (
            "Check that the API key was entered correctly",
            "Confirm the key has not expired or been revoked",
            "Make sure the account has access to this endpoint",
        ),
        icon="🔐",
    ),
    "auth:HTTP_401": MessageTemplate(
        "Invalid API key",
        "The API key is incorrect or has expired.",
        (
            "Check the key with 'ccvm provider show <alias>'",
            "Update it with 'ccvm provider edit <alias> --key'",
            "Request a new key from the provider",
        ),
        icon="🔑",
    ),
    "config": MessageTemplate(
        "Configuration problem",
        "A provider profile or the settings file is missing or invalid.",
        (
            "Check that the configuration file exists",
            "Check the file's permissions (profiles should be mode 600)",
            "Check that the file contains valid JSON with alias, baseURL and apiKey",
        ),
        icon="⚙",
    ),
    "config:CONFIG_NOT_FOUND": MessageTemplate(
        "Provider not found",
        "No profile is stored under that alias.",
        (
            "Run 'ccvm provider list' to see configured providers",
            "Run 'ccvm provider add <alias>' to create it",
            "Check the ~/.claude/ccvm/providers directory",
        ),
        icon="📄",
    ),
    "config:CONFIG_EXISTS": MessageTemplate(
        "Provider already exists",
        "A profile with that alias is already stored.",
        (
            "Pick a different alias",
            "Use 'ccvm provider edit <alias>' to change it",
            "Pass --overwrite to replace it",
        ),
        icon="📄",
    ),
    "config:EACCES": MessageTemplate(
        "Configuration file permission denied",
        "The configuration file cannot be accessed by the current user.",
        (
            "Check the owner of ~/.claude/ccvm",
            "Run 'chmod 600' on the profile file",
            "Make sure the current user can write the directory",
        ),
        icon="🔒",
    ),
    "filesystem": MessageTemplate(
        "File system error",
        "A file or directory operation failed.",
        (
            "Check that the path exists",
            "Check file and directory permissions",
            "Check that the disk is not full or read-only",
        ),
        icon="📁",
    ),
    "unknown": MessageTemplate(
        "Unexpected error",
        "An error occurred that ccvm does not recognize.",
        (
            "Re-run with --verbose for technical details",
            "Check the log under ~/.claude/ccvm/logs",
            "If the problem persists, please file an issue",
        ),
        icon="❌",
    ),
}

_ZH: dict[str, MessageTemplate] = {
    "network": MessageTemplate(
        "网络请求失败",
        "无法连接到 Provider 服务端点。",
        (
            "检查网络连接是否正常",
            "验证 API 端点地址的域名是否正确",
            "如使用代理或 VPN，请检查其设置",
        ),
        icon="🌐",
    ),
    "network:ENOTFOUND": MessageTemplate(
        "网络连接失败",
        "无法解析服务器域名。",
        (
            "检查 API 地址拼写是否正确",
            "运行 nslookup 测试域名解析",
            "尝试使用其他网络或 DNS",
        ),
        icon="🌐",
    ),
    "network:ECONNREFUSED": MessageTemplate(
        "服务器拒绝连接",
        "目标服务器拒绝了连接请求。",
        (
            "检查 API 服务是否正常运行",
            "验证端口号是否正确",
            "确认防火墙设置允许连接",
        ),
        icon="🚫",
    ),
    "network:TIMEOUT": MessageTemplate(
        "请求超时",
        "服务器响应时间过长。",
        (
            "检查网络连接速度",
            "尝试增加超时时间设置",
            "稍后重试或切换到其他 API 提供商",
        ),
        icon="⏱",
    ),
    "auth": MessageTemplate(
        "认证失败",
        "身份验证未通过。",
        (
            "确认 API 密钥格式正确",
            "检查账户是否有足够权限",
            "联系 API 提供商确认账户状态",
        ),
        icon="🔐",
    ),
    "auth:HTTP_401": MessageTemplate(
        "API 密钥无效",
        "提供的 API 密钥不正确或已过期。",
        (
            "检查 API 密钥是否正确输入",
            "验证 API 密钥是否仍然有效",
            "重新获取新的 API 密钥",
        ),
        icon="🔑",
    ),
    "config": MessageTemplate(
        "配置文件格式错误",
        "配置文件内容不正确或已损坏。",
        (
            "检查配置文件是否存在",
            "检查文件权限是否为 600",
            "检查 JSON 格式是否正确",
        ),
        icon="⚙",
    ),
    "config:CONFIG_NOT_FOUND": MessageTemplate(
        "配置未找到",
        "该别名下没有保存的 Provider 配置。",
        (
            "运行 ccvm provider list 查看现有配置",
            "运行 ccvm provider add 创建新的配置",
            "检查 ~/.claude/ccvm/providers 目录",
        ),
        icon="📄",
    ),
    "config:CONFIG_EXISTS": MessageTemplate(
        "配置已存在",
        "该别名已被使用。",
        ("换一个别名", "使用 ccvm provider edit 修改配置", "使用 --overwrite 覆盖"),
        icon="📄",
    ),
    "filesystem": MessageTemplate(
        "文件系统错误",
        "文件或目录操作失败。",
        (
            "检查文件路径是否正确",
            "检查文件/目录权限",
            "确认磁盘未满且可写",
        ),
        icon="📁",
    ),
    "unknown": MessageTemplate(
        "系统错误",
        "发生了未知的系统错误。",
        (
            "使用 --verbose 查看技术详情",
            "查看 ~/.claude/ccvm/logs 下的日志",
            "如问题持续，请提交 Issue 反馈",
        ),
        icon="❌",
    ),
}

CATALOG: dict[str, dict[str, MessageTemplate]] = {"en": _EN, "zh": _ZH}

LABELS: dict[str, dict[str, str]] = {
    "en": {
        "context": "While",
        "suggestions": "Suggestions",
        "details": "Technical details",
        "code": "Error code",
        "message": "Error message",
    },
    "zh": {
        "context": "发生位置",
        "suggestions": "建议解决方案",
        "details": "技术详情",
        "code": "错误代码",
        "message": "错误信息",
    },
}


def normalize_locale(locale: Optional[str]) -> str:
    """Reduce values like ``zh_CN.UTF-8`` to a catalog key."""
    if not locale:
        return DEFAULT_LOCALE
    language = locale.split(".", 1)[0].replace("-", "_").split("_", 1)[0].lower()
    return language if language in CATALOG else DEFAULT_LOCALE


def get_template(
    category: Union[ErrorCategory, str],
    code: Optional[str] = None,
    locale: Optional[str] = DEFAULT_LOCALE,
) -> MessageTemplate:
    key = category.value if isinstance(category, ErrorCategory) else str(category)
    keys = [f"{key}:{code}", key] if code else [key]
    for table in (CATALOG[normalize_locale(locale)], CATALOG[DEFAULT_LOCALE]):
        for candidate in keys:
            if candidate in table:
                return table[candidate]
    return CATALOG[DEFAULT_LOCALE]["unknown"]


def get_label(name: str, locale: Optional[str] = DEFAULT_LOCALE) -> str:
    return LABELS[normalize_locale(locale)].get(name, LABELS[DEFAULT_LOCALE][name])
