"""Client factory: returns the demo or live client for a stored credential.

Patients linked with the configured demo key get generated data; every
other credential is used as a bearer token against the Oura API.
Both implement the same OuraDataSource protocol.
"""

import random
from collections.abc import Callable

from oura.adapters.oura_demo import OuraDemoClient
from oura.adapters.oura_live import OuraLiveClient
from oura.adapters.protocol import OuraDataSource
from oura.domain.models import CredentialRecord
from shared.config import Settings

ClientFactory = Callable[[CredentialRecord], OuraDataSource]


def get_client(credential: CredentialRecord, settings: Settings) -> OuraDataSource:
    """Return the appropriate client for the given credential.

    - demo key: generated data, seeded from settings.demo_seed when set
    - anything else: live Oura API client
    """
    if credential.api_key == settings.demo_api_key:
        return OuraDemoClient(random.Random(settings.demo_seed))
    return OuraLiveClient(
        credential.api_key,
        base_url=settings.api_base_url,
        timeout=settings.request_timeout_seconds,
    )


def make_client_factory(settings: Settings) -> ClientFactory:
    def factory(credential: CredentialRecord) -> OuraDataSource:
        return get_client(credential, settings)

    return factory
