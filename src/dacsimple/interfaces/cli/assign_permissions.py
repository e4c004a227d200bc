"""Assign or revoke privileges on a class from the command line.

Usage:
  dacsimple-assign --class http://example.org/items#Math \\
      --permissions "http://example.org/roles#Author=READ,WRITE" --recursive
  dacsimple-assign -c http://example.org/items#Math \\
      -p http://example.org/roles#Author --revoke
"""

import argparse
import asyncio
import logging
import sys

from dacsimple.config import get_settings
from dacsimple.domain.entities import Resource
from dacsimple.domain.exceptions import DacError, ValidationError
from dacsimple.domain.value_objects import Privilege
from dacsimple.infrastructure.persistence.postgres.connection import create_pool
from dacsimple.infrastructure.persistence.postgres.unit_of_work import create_uow_factory
from dacsimple.logging_config import configure_logging
from dacsimple.main import Services, build_services

logger = logging.getLogger(__name__)

ALLOWED_PERMISSIONS = {p.value for p in Privilege}


def parse_permission_options(values: list[str]) -> dict[str, set[Privilege]]:
    """Parse ``principal=READ,WRITE`` options.

    Unknown privileges are skipped with a warning. For revocation the
    privilege list may be omitted.
    """
    permissions: dict[str, set[Privilege]] = {}
    for value in values:
        principal, _, raw = value.partition("=")
        principal = principal.strip()
        if not principal:
            raise ValidationError(f"Invalid permission option {value!r}")

        privileges = set()
        for item in raw.split(","):
            item = item.strip().upper()
            if not item:
                continue
            if item not in ALLOWED_PERMISSIONS:
                logger.warning("Permission %s is not allowed. Skipped.", item)
                continue
            privileges.add(Privilege(item))
        permissions.setdefault(principal, set()).update(privileges)
    return permissions


async def assign_permissions(
    services: Services,
    resource_class: Resource,
    permissions: dict[str, set[Privilege]],
    recursive: bool,
) -> None:
    for principal in [p for p, privileges in permissions.items() if not privileges]:
        logger.warning("Permissions list for %s is empty. Skipped.", principal)
        del permissions[principal]
    if not permissions:
        raise ValidationError("Permission list is empty.")

    target = await services.privilege_store.get_resource_permissions(resource_class.uri)
    target.update(permissions)
    await services.change_permissions.save_permissions(recursive, resource_class, target)


async def revoke_permissions(
    services: Services,
    resource_class: Resource,
    principals: list[str],
    recursive: bool,
) -> None:
    # an empty target revokes the principal under both policies
    target = {principal: set() for principal in principals}
    await services.change_permissions.save_permissions(recursive, resource_class, target)


async def run(args: argparse.Namespace) -> int:
    settings = get_settings()
    pool = create_pool(settings.database_url, min_size=1, max_size=2)
    services = build_services(settings, create_uow_factory(pool))

    await pool.open()
    try:
        resource_class = await services.resource_tree.get_resource(args.resource_class)
        if resource_class is None or not resource_class.is_class:
            logger.error("Class %s does not exist.", args.resource_class)
            return 1

        permissions = parse_permission_options(args.permissions)
        logger.info("Started to %s permissions.", "revoke" if args.revoke else "assign")
        if args.revoke:
            await revoke_permissions(services, resource_class, list(permissions), args.recursive)
        else:
            await assign_permissions(services, resource_class, permissions, args.recursive)
    except DacError as e:
        logger.error("%s", e)
        return 1
    finally:
        await pool.close()

    logger.info("Done.")
    return 0


def main() -> int:
    parser = argparse.ArgumentParser(
        description="Assign or revoke a list of permissions on a class."
    )
    parser.add_argument(
        "-c", "--class", dest="resource_class", required=True, help="Class uri"
    )
    parser.add_argument(
        "-p",
        "--permissions",
        action="append",
        required=True,
        help="principal=PRIVILEGE[,PRIVILEGE...] (repeatable)",
    )
    parser.add_argument("--recursive", action="store_true", help="Apply to the whole subtree")
    parser.add_argument("--revoke", action="store_true", help="Revoke instead of assign")
    args = parser.parse_args()

    settings = get_settings()
    configure_logging(settings.log_level, settings.debug)
    return asyncio.run(run(args))


if __name__ == "__main__":
    sys.exit(main())
