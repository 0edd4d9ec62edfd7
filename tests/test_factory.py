import pytest
from pydantic import ValidationError

from powerlpar.factory import lifecycle_factory
from powerlpar.ibm.instance_client import PowerInstanceClient
from powerlpar.lifecycle import LifecycleController


class TestLifecycleFactory:
    def test_ibm(self):
        result = lifecycle_factory("ibm", {"iam_token": "t", "region": "us-south"})
        assert isinstance(result, LifecycleController)
        assert isinstance(result.client, PowerInstanceClient)
        assert result.timeouts.create == 3600

    def test_custom_timeouts(self):
        result = lifecycle_factory(
            "ibm", {"iam_token": "t", "region": "us-south"}, {"update": 600}
        )
        assert result.timeouts.update == 600
        assert result.timeouts.delete == 3600

    def test_unsupported_provider(self):
        with pytest.raises(ValueError, match="Unsupported cloud provider"):
            lifecycle_factory("aws", {})

    def test_invalid_config(self):
        with pytest.raises(ValidationError):
            lifecycle_factory("ibm", {"iam_token": "t", "region": "us-south", "bogus": 1})
