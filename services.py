from dataclasses import dataclass

from flask import current_app

from auth_utils import TokenAuthorizer
from config import Settings
from path_utils import PathSandbox
from short_links import ShortCodeRegistry


@dataclass
class Services:
    settings: Settings
    credential_store: object
    link_store: object
    authorizer: TokenAuthorizer
    sandbox: PathSandbox
    registry: ShortCodeRegistry


def services() -> Services:
    return current_app.extensions["fileshare"]
