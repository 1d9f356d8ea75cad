from sitepin.main import main

main()
