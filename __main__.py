"""
Presigned Upload URL service - SigV4 presigned PUT URLs for S3-compatible storage
"""
import pulumi
import pulumi_aws as aws
import json

# Configuration
config = pulumi.Config()
minio_endpoint = config.require("minioEndpoint")
minio_bucket = config.require("minioBucket")
minio_access_key = config.require("minioAccessKey")
minio_secret_key = config.require_secret("minioSecretKey")
minio_use_ssl = config.get_bool("minioUseSsl") or False
minio_port = config.get("minioPort")
minio_region = config.get("minioRegion") or "us-east-1"
expiry_seconds = config.get_int("expirySeconds") or 300
cors_origin = config.get("corsOrigin") or "*"

# Secrets Manager for the storage secret key
storage_secret = aws.secretsmanager.Secret(
    "storage-secret-key",
    description="Secret key used to sign presigned upload URLs"
)

storage_secret_version = aws.secretsmanager.SecretVersion(
    "storage-secret-key-version",
    secret_id=storage_secret.id,
    secret_string=minio_secret_key.apply(lambda key: json.dumps({"secret_key": key}))
)

# IAM role for Lambda functions
lambda_role = aws.iam.Role(
    "lambda-execution-role",
    assume_role_policy=json.dumps({
        "Version": "2012-10-17",
        "Statement": [{
            "Action": "sts:AssumeRole",
            "Effect": "Allow",
            "Principal": {"Service": "lambda.amazonaws.com"}
        }]
    })
)

# Lambda basic execution policy
aws.iam.RolePolicyAttachment(
    "lambda-basic-execution",
    role=lambda_role.name,
    policy_arn="arn:aws:iam::aws:policy/service-role/AWSLambdaBasicExecutionRole"
)

# Secret read access for Lambda
secret_policy = aws.iam.RolePolicy(
    "lambda-secret-policy",
    role=lambda_role.id,
    policy=storage_secret.arn.apply(
        lambda arn: json.dumps({
            "Version": "2012-10-17",
            "Statement": [{
                "Effect": "Allow",
                "Action": [
                    "secretsmanager:GetSecretValue"
                ],
                "Resource": arn
            }]
        })
    )
)

environment_variables = {
    "MINIO_ENDPOINT": minio_endpoint,
    "MINIO_BUCKET": minio_bucket,
    "MINIO_ACCESS_KEY": minio_access_key,
    "MINIO_SECRET_KEY_SECRET_NAME": storage_secret.name,
    "MINIO_USE_SSL": "true" if minio_use_ssl else "false",
    "MINIO_REGION": minio_region,
    "EXPIRY_SECONDS": str(expiry_seconds),
    "CORS_ORIGIN": cors_origin,
}
if minio_port:
    environment_variables["MINIO_PORT"] = minio_port

# Lambda function: Presigned URL Generator
presigned_url_lambda = aws.lambda_.Function(
    "presigned-url-generator",
    runtime="python3.11",
    handler="presigned_url.handler",
    role=lambda_role.arn,
    code=pulumi.AssetArchive({
        "presigned_url.py": pulumi.FileAsset("src/lambdas/presigned_url.py"),
        "presigner/": pulumi.FileArchive("src/presigner")
    }),
    timeout=10,
    memory_size=128,
    environment=aws.lambda_.FunctionEnvironmentArgs(
        variables=environment_variables
    ),
    opts=pulumi.ResourceOptions(depends_on=[storage_secret_version])
)

# API Gateway
api_gateway = aws.apigatewayv2.Api(
    "presigned-url-api",
    protocol_type="HTTP"
)

# API Gateway Integration
api_integration = aws.apigatewayv2.Integration(
    "presigned-url-integration",
    api_id=api_gateway.id,
    integration_type="AWS_PROXY",
    integration_uri=presigned_url_lambda.arn,
    integration_method="POST",
    payload_format_version="2.0"
)

# Every method reaches the handler so it can answer 405 itself
api_route = aws.apigatewayv2.Route(
    "presigned-url-route",
    api_id=api_gateway.id,
    route_key="ANY /presignedUrl",
    target=api_integration.id.apply(lambda id: f"integrations/{id}")
)

# Lambda permission for API Gateway
api_permission = aws.lambda_.Permission(
    "api-gateway-lambda-permission",
    action="lambda:InvokeFunction",
    function=presigned_url_lambda.name,
    principal="apigateway.amazonaws.com",
    source_arn=api_gateway.execution_arn.apply(lambda arn: f"{arn}/*/*")
)

# API Gateway Stage (required for HTTP API to work)
api_stage = aws.apigatewayv2.Stage(
    "api-stage",
    api_id=api_gateway.id,
    name="$default",
    auto_deploy=True
)

# Exports
pulumi.export("api_gateway_url", api_gateway.api_endpoint)
pulumi.export("presigned_url_endpoint", api_gateway.api_endpoint.apply(lambda url: f"{url}/presignedUrl"))
pulumi.export("presigned_url_lambda_arn", presigned_url_lambda.arn)
pulumi.export("storage_secret_name", storage_secret.name)
