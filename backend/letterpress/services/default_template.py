"""
Markup for the template created the first time a product is ordered without
one. Shop owners replace it from the admin; the pipeline only ever reads it.
"""

DEFAULT_TEMPLATE_HTML = """
<!DOCTYPE html>
<html>
<head>
  <meta charset="utf-8">
  <style>
    body {
      font-family: 'Georgia', serif;
      margin: 0;
      padding: 40px;
      background: linear-gradient(135deg, #f5f7fa 0%, #c3cfe2 100%);
      min-height: 100vh;
    }
    .letter-container {
      max-width: 800px;
      margin: 0 auto;
      background: white;
      padding: 60px;
      box-shadow: 0 10px 30px rgba(0,0,0,0.1);
      border-radius: 8px;
    }
    .header {
      text-align: center;
      margin-bottom: 40px;
      border-bottom: 3px solid #d4af37;
      padding-bottom: 20px;
    }
    .header h1 {
      color: #2c3e50;
      font-size: 36px;
      margin: 0;
      font-weight: bold;
    }
    .content {
      line-height: 1.8;
      font-size: 18px;
      color: #34495e;
      margin: 30px 0;
    }
    .order-info {
      margin: 30px 0;
      padding: 20px;
      background: #f8f9fa;
      border-radius: 4px;
    }
    .image-section {
      text-align: center;
      margin: 40px 0;
    }
    .image-section img {
      max-width: 100%;
      height: auto;
      border-radius: 8px;
      box-shadow: 0 4px 15px rgba(0,0,0,0.1);
    }
    .download-button {
      display: inline-block;
      margin-top: 30px;
      padding: 15px 30px;
      background: #d4af37;
      color: white;
      text-decoration: none;
      border-radius: 5px;
      font-weight: bold;
      text-align: center;
    }
    .footer {
      margin-top: 50px;
      text-align: center;
      color: #7f8c8d;
      font-size: 14px;
    }
  </style>
</head>
<body>
  <div class="letter-container">
    <div class="header">
      <h1>{{productTitle}}</h1>
    </div>

    <div class="content">
      {{imageSection}}

      <div class="order-info">
        <p><strong>Order Number:</strong> {{orderName}}</p>
        <p><strong>Product:</strong> {{productTitle}}</p>
        <p><strong>Quantity:</strong> {{quantity}}</p>
        <p><strong>Price:</strong> {{price}}</p>
      </div>

      {{orderDetailsSection}}

      {{downloadButtonSection}}
    </div>

    <div class="footer">
      <p>Created with love by The Best Letters</p>
      <p>Order: {{orderName}}</p>
    </div>
  </div>
</body>
</html>
""".strip()


def default_template_name(product_title: str) -> str:
    return f"Default Template - {product_title}"
