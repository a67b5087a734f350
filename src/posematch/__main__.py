from posematch.cli.main import main

raise SystemExit(main())
