#!/usr/bin/env python3
"""
SAP Cloud Identity Services CLI
"""
import argparse
import json
import sys
from pathlib import Path

from sci_client import (
    IdentityClient,
    ClientError,
    ConfigError,
    User,
    Group,
    Schema,
    Application,
    IdentityProvider,
    DEFAULT_USER_SCHEMAS,
    DEFAULT_GROUP_SCHEMAS,
    missing_default_schemas,
    get_custom_schemas,
    load_config,
)
from sci_client.config import DEFAULT_CONFIG_FILE
from sci_client.logging_config import configure_logging

# 命令可能抛出的错误；WireError / CustomSchemaError / RecordValidationError 都是 ValueError
CLI_ERRORS = (ClientError, ConfigError, ValueError, OSError)


def load_json(file: str) -> dict | list:
    path = Path(file)
    if not path.exists():
        raise FileNotFoundError(f"文件不存在: {file}")
    with open(path, 'r', encoding='utf-8') as f:
        return json.load(f)


def load_custom_schemas(value: str | None) -> str:
    """--custom-schemas 可以是文件路径，也可以直接是 JSON"""
    if not value:
        return ""
    # JSON 对象直接使用，不当作文件名 (过长的文件名会让 exists 抛出 OSError)
    if value.lstrip().startswith("{"):
        return value.strip()
    return Path(value).read_text(encoding='utf-8').strip()


def get_client(args) -> IdentityClient:
    return IdentityClient.from_config(load_config(args.config))


def print_json(data):
    print(json.dumps(data, indent=2, ensure_ascii=False))


def with_custom_schemas(d: dict, custom_schemas: str) -> dict:
    """把 custom schemas 合并回记录的 dict，用于输出"""
    if custom_schemas:
        d.update(json.loads(custom_schemas))
    return d


# ========== 记录构建 ==========

def build_user(data: dict) -> User:
    """从 dict 构建 User，补全默认 schemas"""
    user = User.from_dict(data)
    user.schemas = list(user.schemas or []) + missing_default_schemas(user.schemas, DEFAULT_USER_SCHEMAS)
    user.validate()
    return user


def build_group(data: dict) -> Group:
    """从 dict 构建 Group，补全默认 schemas"""
    group = Group.from_dict(data)
    group.schemas = list(group.schemas or []) + missing_default_schemas(group.schemas, DEFAULT_GROUP_SCHEMAS)
    group.validate()
    return group


def build_schema(data: dict) -> Schema:
    schema = Schema.from_dict(data)
    schema.validate()
    return schema


def build_application(data: dict) -> Application:
    app = Application.from_dict(data)
    app.validate()
    return app


def build_idp(data: dict) -> IdentityProvider:
    idp = IdentityProvider.from_dict(data)
    idp.validate()
    return idp


def as_list(data: dict | list) -> list:
    return data if isinstance(data, list) else [data]


def record_label(data, key: str) -> str:
    """错误输出中用来标识一条记录"""
    if isinstance(data, dict):
        return data.get(key, '?')
    return str(data)


# ========== 用户命令 ==========

def cmd_user_list(args):
    with get_client(args) as client:
        users, custom_schemas = client.users.get_all()
    resources = users.Resources or []
    if args.format == "json":
        print_json([with_custom_schemas(u.to_dict(), custom_schemas.get(i, "")) for i, u in enumerate(resources)])
    else:
        print(f"共 {len(resources)} 个用户:\n")
        for u in resources:
            status = "✓" if u.active else "✗"
            print(f"  {status} {u.userName} ({u.displayName}) [id: {u.id}]")


def cmd_user_get(args):
    with get_client(args) as client:
        user, custom_schemas = client.users.get(args.id)
    print_json(with_custom_schemas(user.to_dict(), custom_schemas))


def _write_users(args, update: bool) -> int:
    explicit = load_custom_schemas(args.custom_schemas)
    has_error = False
    with get_client(args) as client:
        for u in as_list(load_json(args.file)):
            try:
                user = build_user(u)
                # 文件中 User 没有声明的字段也作为 custom schemas 发送
                custom_schemas = explicit or get_custom_schemas(User, u)
                if update:
                    result, _ = client.users.update(user, custom_schemas)
                    print(f"✓ 更新: {result.userName} [id: {result.id}]")
                else:
                    result, _ = client.users.create(user, custom_schemas)
                    print(f"✓ 创建: {result.userName} [id: {result.id}]")
            except CLI_ERRORS as e:
                print(f"✗ {record_label(u, 'userName')}: {e}")
                has_error = True
    return 1 if has_error else 0


def cmd_user_create(args):
    return _write_users(args, update=False)


def cmd_user_update(args):
    return _write_users(args, update=True)


def cmd_user_delete(args):
    with get_client(args) as client:
        client.users.delete(args.id)
    print(f"✓ 删除: {args.id}")


# ========== 组命令 ==========

def cmd_group_list(args):
    with get_client(args) as client:
        groups = client.groups.get_all()
    resources = groups.Resources or []
    print(f"共 {len(resources)} 个组:\n")
    for g in resources:
        print(f"  {g.displayName} ({len(g.members or [])} 个成员) [id: {g.id}]")


def cmd_group_get(args):
    with get_client(args) as client:
        group = client.groups.get(args.id)
    print_json(group.to_dict())


def _write_groups(args, update: bool) -> int:
    has_error = False
    with get_client(args) as client:
        for g in as_list(load_json(args.file)):
            try:
                group = build_group(g)
                for member in group.members or []:
                    client.validate_member(member.value)
                if update:
                    result = client.groups.update(group)
                    print(f"✓ 更新: {result.displayName} [id: {result.id}]")
                else:
                    result = client.groups.create(group)
                    print(f"✓ 创建: {result.displayName} [id: {result.id}]")
            except CLI_ERRORS as e:
                print(f"✗ {record_label(g, 'displayName')}: {e}")
                has_error = True
    return 1 if has_error else 0


def cmd_group_create(args):
    return _write_groups(args, update=False)


def cmd_group_update(args):
    return _write_groups(args, update=True)


def cmd_group_delete(args):
    with get_client(args) as client:
        client.groups.delete(args.id)
    print(f"✓ 删除: {args.id}")


# ========== Schema 命令 ==========

def cmd_schema_list(args):
    with get_client(args) as client:
        schemas = client.schemas.get_all()
    resources = schemas.Resources or []
    print(f"共 {len(resources)} 个 schema:\n")
    for s in resources:
        print(f"  {s.name} [id: {s.id}]")


def cmd_schema_get(args):
    with get_client(args) as client:
        schema = client.schemas.get(args.id)
    print_json(schema.to_dict())


def cmd_schema_create(args):
    has_error = False
    with get_client(args) as client:
        for s in as_list(load_json(args.file)):
            try:
                result = client.schemas.create(build_schema(s))
                print(f"✓ 创建: {result.name} [id: {result.id}]")
            except CLI_ERRORS as e:
                print(f"✗ {record_label(s, 'id')}: {e}")
                has_error = True
    return 1 if has_error else 0


def cmd_schema_delete(args):
    with get_client(args) as client:
        client.schemas.delete(args.id)
    print(f"✓ 删除: {args.id}")


# ========== 应用命令 ==========

def cmd_application_list(args):
    with get_client(args) as client:
        apps = client.applications.get_all()
    resources = apps.applications or []
    print(f"共 {len(resources)} 个应用:\n")
    for a in resources:
        print(f"  {a.name} [id: {a.id}]")


def cmd_application_get(args):
    with get_client(args) as client:
        app = client.applications.get(args.id)
    print_json(app.to_dict())


def _write_applications(args, update: bool) -> int:
    has_error = False
    with get_client(args) as client:
        for a in as_list(load_json(args.file)):
            try:
                app = build_application(a)
                if update:
                    result = client.applications.update(app)
                    print(f"✓ 更新: {result.name} [id: {result.id}]")
                else:
                    result = client.applications.create(app)
                    print(f"✓ 创建: {result.name} [id: {result.id}]")
            except CLI_ERRORS as e:
                print(f"✗ {record_label(a, 'name')}: {e}")
                has_error = True
    return 1 if has_error else 0


def cmd_application_create(args):
    return _write_applications(args, update=False)


def cmd_application_update(args):
    return _write_applications(args, update=True)


def cmd_application_delete(args):
    with get_client(args) as client:
        client.applications.delete(args.id)
    print(f"✓ 删除: {args.id}")


# ========== Identity Provider 命令 ==========

def cmd_idp_list(args):
    with get_client(args) as client:
        idps = client.corporate_idps.get_all()
    resources = idps.identityProviders or []
    print(f"共 {len(resources)} 个 identity provider:\n")
    for i in resources:
        print(f"  {i.displayName} ({i.type}) [id: {i.id}]")


def cmd_idp_get(args):
    with get_client(args) as client:
        idp = client.corporate_idps.get(args.id)
    print_json(idp.to_dict())


def cmd_idp_create(args):
    has_error = False
    with get_client(args) as client:
        for i in as_list(load_json(args.file)):
            try:
                result = client.corporate_idps.create(build_idp(i))
                print(f"✓ 创建: {result.displayName} [id: {result.id}]")
            except CLI_ERRORS as e:
                print(f"✗ {record_label(i, 'displayName')}: {e}")
                has_error = True
    return 1 if has_error else 0


def cmd_idp_delete(args):
    with get_client(args) as client:
        client.corporate_idps.delete(args.id)
    print(f"✓ 删除: {args.id}")


# ========== 主函数 ==========

def add_crud_commands(subparsers, name: str, label: str, handlers: dict):
    """添加 list/get/create/update/delete 子命令，handlers 中没有的不添加"""
    parser = subparsers.add_parser(name, help=f'{label}管理')
    sub = parser.add_subparsers(dest='action')

    if 'list' in handlers:
        p = sub.add_parser('list', help=f'列出{label}')
        if name == 'user':
            p.add_argument('--format', choices=['table', 'json'], default='table')
        p.set_defaults(func=handlers['list'])

    if 'get' in handlers:
        p = sub.add_parser('get', help=f'获取{label}')
        p.add_argument('id')
        p.set_defaults(func=handlers['get'])

    for action, text in (('create', '创建'), ('update', '更新')):
        if action in handlers:
            p = sub.add_parser(action, help=f'{text}{label}')
            p.add_argument('file', help='JSON 文件')
            if name == 'user':
                p.add_argument('--custom-schemas', help='custom schemas (JSON 文件或 JSON 字符串)')
            p.set_defaults(func=handlers[action])

    if 'delete' in handlers:
        p = sub.add_parser('delete', help=f'删除{label}')
        p.add_argument('id')
        p.set_defaults(func=handlers['delete'])


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog='sci-cli', description='SAP Cloud Identity Services CLI')
    parser.add_argument('--config', default=DEFAULT_CONFIG_FILE, help=f'配置文件，默认 {DEFAULT_CONFIG_FILE}')
    parser.add_argument('-v', '--verbose', action='store_true', help='输出调试日志')
    parser.add_argument('--log-json', action='store_true', help='日志使用 JSON 格式')
    subparsers = parser.add_subparsers(dest='command', help='命令')

    add_crud_commands(subparsers, 'user', '用户', {
        'list': cmd_user_list,
        'get': cmd_user_get,
        'create': cmd_user_create,
        'update': cmd_user_update,
        'delete': cmd_user_delete,
    })
    add_crud_commands(subparsers, 'group', '组', {
        'list': cmd_group_list,
        'get': cmd_group_get,
        'create': cmd_group_create,
        'update': cmd_group_update,
        'delete': cmd_group_delete,
    })
    add_crud_commands(subparsers, 'schema', ' schema ', {
        'list': cmd_schema_list,
        'get': cmd_schema_get,
        'create': cmd_schema_create,
        'delete': cmd_schema_delete,
    })
    add_crud_commands(subparsers, 'application', '应用', {
        'list': cmd_application_list,
        'get': cmd_application_get,
        'create': cmd_application_create,
        'update': cmd_application_update,
        'delete': cmd_application_delete,
    })
    add_crud_commands(subparsers, 'idp', ' identity provider ', {
        'list': cmd_idp_list,
        'get': cmd_idp_get,
        'create': cmd_idp_create,
        'delete': cmd_idp_delete,
    })
    return parser


def main(argv=None):
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 0
    if not hasattr(args, 'func'):
        parser.parse_args([args.command, '-h'])
        return 0

    configure_logging(verbose=args.verbose, log_json=args.log_json)

    try:
        return args.func(args) or 0
    except CLI_ERRORS as e:
        print(f"✗ {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
