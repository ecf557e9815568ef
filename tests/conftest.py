"""
Shared pytest fixtures for all tests.

Components are declared inside a throwaway stack and asserted against the
synthesized CloudFormation template:

    def test_something(stack):
        VpcComponent(stack, "Network", VpcArgs(name="test"))
        template = Template.from_stack(stack)
        template.resource_count_is("AWS::EC2::Subnet", 4)
"""

import pytest
from aws_cdk import App, Stack


@pytest.fixture
def app() -> App:
    """A fresh CDK app per test."""
    return App()


@pytest.fixture
def stack(app: App) -> Stack:
    """An environment-agnostic stack to declare components in."""
    return Stack(app, "TestStack")
