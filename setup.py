#!/usr/bin/env python
# -*- encoding: utf-8 -*-
import io
import re
from os.path import dirname, join

from setuptools import find_packages, setup


def read(*names, **kwargs):
    return io.open(
        join(dirname(__file__), *names), encoding=kwargs.get("encoding", "utf8")
    ).read()


def find_version(*file_paths):
    contents = read(*file_paths)
    match = re.search(r"^__version__ = ['\"]([^'\"]*)['\"]", contents, re.M)
    if match:
        return match.group(1)
    raise RuntimeError("Unable to find version string.")


TESTS_REQUIRE = ["pytest", "pytest-mock", "freezegun"]

setup(
    name="mskauth",
    python_requires=">=3.7",
    version=find_version("src", "mskauth", "__init__.py"),
    license="MIT",
    description="AWS credential resolution for IAM authentication to Amazon MSK",
    long_description="""`mskauth` resolves the AWS credentials a Kafka client uses to sign
IAM authentication requests to Amazon MSK. Credentials come from an optional
named profile, an optional assumed role, or the default fallback sequence of
environment variables, system properties, web identity tokens, the ambient
profile, and container or instance metadata.""",
    long_description_content_type="text/markdown",
    author="Pete Kazmier",
    author_email="opensource@fidelity.com",
    packages=find_packages("src"),
    package_dir={"": "src"},
    include_package_data=True,
    zip_safe=False,
    classifiers=[
        # complete classifier list: http://pypi.python.org/pypi?%3Aaction=list_classifiers
        "Development Status :: 5 - Production/Stable",
        "Intended Audience :: Developers",
        "License :: OSI Approved :: MIT License",
        "Operating System :: Unix",
        "Operating System :: POSIX",
        "Operating System :: Microsoft :: Windows",
        "Programming Language :: Python",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.7",
        "Programming Language :: Python :: 3.8",
        "Programming Language :: Python :: 3.9",
        "Programming Language :: Python :: Implementation :: CPython",
        "Topic :: Security",
    ],
    keywords=["mskauth", "aws", "msk", "kafka", "iam"],
    install_requires=[
        "boto3>=1.34",
    ],
    tests_require=TESTS_REQUIRE,
    extras_require={"test": TESTS_REQUIRE},
)
