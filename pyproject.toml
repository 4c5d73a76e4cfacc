[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "kafkaoperator"
version = "0.1.0"
description = "Kubernetes manifests, broker configuration, Cruise Control scaling and topic admission for Kafka clusters"
requires-python = ">=3.10"
dependencies = [
    "pyyaml",
]
keywords = [
    "kafka",
    "kubernetes",
    "operator",
    "cruise-control",
    "envoy",
    "admission-webhook",
]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: System Administrators",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: System :: Clustering",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[project.scripts]
kafkaoperator-webhook = "kafkaoperator.webhook:main"

[tool.hatch.build.targets.wheel]
packages = ["kafkaoperator"]

[tool.pytest.ini_options]
addopts = "-ra"
testpaths = ["tests"]

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.ruff.lint]
select = ["E", "F", "W", "I", "B", "UP"]

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
warn_redundant_casts = true
